"""Receipt image normalization, OCR and text parsing."""
