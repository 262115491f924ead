"""Closed expense category taxonomy.

The same set is used for classifier output and as the valid choices any
review form must offer.
"""

FOOD_AND_DINING = "Food & Dining"
TRANSPORTATION = "Transportation"
SHOPPING = "Shopping"
ENTERTAINMENT = "Entertainment"
BILLS_AND_UTILITIES = "Bills & Utilities"
HEALTHCARE = "Healthcare"
EDUCATION = "Education"
TRAVEL = "Travel"
PERSONAL_CARE = "Personal Care"
HOME_AND_GARDEN = "Home & Garden"
INSURANCE = "Insurance"
TAXES = "Taxes"
MISCELLANEOUS = "Miscellaneous"

EXPENSE_CATEGORIES: tuple[str, ...] = (
    FOOD_AND_DINING,
    TRANSPORTATION,
    SHOPPING,
    ENTERTAINMENT,
    BILLS_AND_UTILITIES,
    HEALTHCARE,
    EDUCATION,
    TRAVEL,
    PERSONAL_CARE,
    HOME_AND_GARDEN,
    INSURANCE,
    TAXES,
    MISCELLANEOUS,
)


def is_known_category(name: str) -> bool:
    return name in EXPENSE_CATEGORIES
