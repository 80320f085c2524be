import hashlib

EXPENSE_CATEGORIES = ["Food", "Travel", "Shopping", "Rent", "Others"]
INCOME_CATEGORIES = ["Salary", "Freelance", "Investment", "Others"]

CATEGORY_VOCABULARY = {
    "expense": EXPENSE_CATEGORIES,
    "income": INCOME_CATEGORIES,
}

CATEGORY_COLORS = {
    "Food": "hsl(174, 62%, 38%)",
    "Rent": "hsl(217, 70%, 55%)",
    "Travel": "hsl(38, 92%, 50%)",
    "Shopping": "hsl(0, 72%, 55%)",
    "Others": "hsl(152, 60%, 42%)",
    "Salary": "hsl(152, 60%, 42%)",
    "Freelance": "hsl(174, 62%, 38%)",
    "Investment": "hsl(217, 70%, 55%)",
}


def category_color(name: str) -> str:
    """Chart color for a category; unknown names get a stable hue from their hash."""
    known = CATEGORY_COLORS.get(name)
    if known:
        return known
    digest = hashlib.md5(name.encode("utf-8")).digest()
    hue = int.from_bytes(digest[:4], "big") % 360
    return f"hsl({hue}, 60%, 50%)"


def is_known_category(tx_type: str, category: str) -> bool:
    return category in CATEGORY_VOCABULARY.get(tx_type, [])
