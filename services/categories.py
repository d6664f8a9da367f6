# services/categories.py

CATEGORY_CONFIG = {
    'food': {
        'icon': '🍽️',
        'color': '#FF6B6B',
        'label': 'Food',
        'keywords': ['food', 'meal', 'restaurant', 'kitchen', 'dining'],
    },
    'coffee': {
        'icon': '☕',
        'color': '#8B4513',
        'label': 'Coffee',
        'keywords': ['coffee', 'cafe', 'espresso', 'latte', 'cappuccino', 'brew'],
    },
    'dessert': {
        'icon': '🍰',
        'color': '#FFB6C1',
        'label': 'Dessert',
        'keywords': ['dessert', 'cake', 'sweet', 'pastry', 'ice cream', 'bakery'],
    },
    'drinks': {
        'icon': '🥤',
        'color': '#4ECDC4',
        'label': 'Drinks',
        'keywords': ['drink', 'beverage', 'juice', 'smoothie', 'tea', 'soda'],
    },
    'snacks': {
        'icon': '🍿',
        'color': '#FFE66D',
        'label': 'Snacks',
        'keywords': ['snack', 'chips', 'nuts', 'popcorn', 'crackers'],
    },
    'healthy': {
        'icon': '🥗',
        'color': '#4ECDC4',
        'label': 'Healthy',
        'keywords': ['healthy', 'salad', 'organic', 'vegan', 'vegetarian', 'fresh'],
    },
}

DEFAULT_CATEGORY = {
    'icon': '🛒',
    'color': '#95A5A6',
    'label': 'General',
    'keywords': [],
}


def category_for(subcategory):
    """First category whose keywords appear in the subcategory, in declaration order."""
    if not subcategory or not isinstance(subcategory, str):
        return DEFAULT_CATEGORY

    normalized = subcategory.lower().strip()
    for config in CATEGORY_CONFIG.values():
        if any(keyword in normalized for keyword in config['keywords']):
            return config
    return DEFAULT_CATEGORY


def category_icon(subcategory):
    return category_for(subcategory)['icon']
