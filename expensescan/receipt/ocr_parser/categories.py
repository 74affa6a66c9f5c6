"""Expense category suggestion from merchant name and receipt text."""

from expensescan.domain.receipt import UNCATEGORIZED

# Ordered: the first category with a substring hit wins.
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Groceries": (
        "grocery", "supermarket", "market", "walmart", "kroger", "safeway", "costco",
        "whole foods", "trader joe", "star bazaar", "trent hypermarket", "trent",
        "hypermarket", "reliance fresh", "reliance smart", "dmart", "d-mart",
        "big bazaar", "bigbazaar", "more supermarket", "spencer", "nilgiri",
        "nature basket", "easyday", "spar", "ratnadeep", "heritage", "foodworld",
        "hypercity", "lulu", "margin free", "banana", "fruit", "vegetable", "kg", "gm", "ltr",
    ),
    "Food & Dining": (
        "restaurant", "cafe", "coffee", "pizza", "burger", "grill", "diner", "bistro",
        "kitchen", "mcdonald", "starbucks", "subway", "wendy", "taco", "domino",
        "swiggy", "zomato", "biryani", "dhaba", "hotel",
    ),
    "Transportation": (
        "gas", "fuel", "shell", "exxon", "chevron", "bp", "uber", "lyft", "taxi",
        "parking", "petrol", "diesel", "indian oil", "iocl", "hpcl", "bpcl", "ola", "rapido",
    ),
    "Shopping": (
        "store", "shop", "retail", "mall", "amazon", "target", "best buy", "flipkart",
        "myntra", "ajio", "westside", "pantaloons", "lifestyle", "shopper stop",
        "central", "max", "fbb",
    ),
    "Healthcare": (
        "pharmacy", "drug", "cvs", "walgreens", "medical", "clinic", "hospital",
        "apollo", "medplus", "netmeds", "1mg", "pharmeasy",
    ),
    "Entertainment": ("cinema", "movie", "theater", "theatre", "netflix", "spotify", "pvr", "inox", "bookmyshow"),
    "Utilities": (
        "electric", "power", "water", "internet", "phone", "cable", "airtel", "jio",
        "vodafone", "vi", "bsnl", "bescom", "electricity",
    ),
}


def suggest_category(merchant: str | None, text: str) -> str:
    search_text = f"{merchant or ''} {text}".lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in search_text for keyword in keywords):
            return category
    return UNCATEGORIZED
