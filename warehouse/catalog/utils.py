"""Text cleaning and normalization of catalog values (articles, sizes, colors)"""
import re

from django.conf import settings

ESCAPED_QUOTES = re.compile(r'\\+"')
REPEATED_BACKSLASHES = re.compile(r'\\+')
LEADING_JUNK = re.compile(r'^["\\\[\s]+')
TRAILING_JUNK = re.compile(r'["\\\]\s]+$')
PIPES = re.compile(r'\|+')
DIGITS_ONLY = re.compile(r'^[0-9]+$')
ARTICLE_PATTERN = re.compile(r'^[a-zA-Z0-9\s\-_]+$')

PRODUCT_TEXT_FIELDS = [
    'description',
    'care_instructions',
    'features',
    'technical_specs',
    'materials_info',
    'faq_description',
    'faq_materials',
    'faq_care',
    'faq_reviews',
]

# W101 sizes keep their height suffix
SIZES_WITH_HEIGHT = [
    'XS 160', 'XS 170',
    'S 160', 'S 170',
    'M 160', 'M 170',
    'L 160', 'L 170',
]

ADULT_SIZES = ['XS', 'S', 'M', 'L', 'XL', 'XXL', 'XXXL']


def clean_text(text):
    """
    Strip escaping left over from imported data: escaped quotes become plain
    quotes, and quotes, brackets and backslashes around the value are dropped
    ('["100% хлопок"]' -> '100% хлопок').
    """
    if not text:
        return ''
    if isinstance(text, (list, tuple)):
        text = ' '.join(str(part) for part in text)
    cleaned = str(text)
    cleaned = ESCAPED_QUOTES.sub('"', cleaned)
    cleaned = ESCAPED_QUOTES.sub('"', cleaned)
    cleaned = REPEATED_BACKSLASHES.sub(lambda m: '\\', cleaned)
    cleaned = LEADING_JUNK.sub('', cleaned)
    cleaned = TRAILING_JUNK.sub('', cleaned)
    cleaned = PIPES.sub('', cleaned)
    return cleaned.strip()


def clean_product_text(product):
    """Return a copy of a product dict with every long text field cleaned"""
    cleaned = dict(product)
    for field in PRODUCT_TEXT_FIELDS:
        if cleaned.get(field):
            cleaned[field] = clean_text(cleaned[field])
    return cleaned


def normalize_color_id(value):
    """0, negative, empty and non-numeric ids mean "no color" -> None"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        match = re.match(r'^\s*([+-]?\d+)', value)
        if not match:
            return None
        number = int(match.group(1))
    else:
        try:
            number = int(value)
        except (TypeError, ValueError):
            return None
        if number != value:
            return None
    return number if number > 0 else None


def extract_size_number(size_code):
    """'92 - 2 года' -> '92', 'XL' -> 'XL'"""
    if not size_code:
        return ''
    return str(size_code).split(' ')[0].strip()


def normalize_size_code(size_code):
    """Size as stored in the database: height-suffixed W101 sizes kept whole, others cut to the first token"""
    if not size_code:
        return ''
    trimmed = str(size_code).strip()
    if trimmed in SIZES_WITH_HEIGHT:
        return trimmed
    return extract_size_number(trimmed)


def normalize_article(article):
    """Uppercase a leading lowercase latin letter: 'w101' -> 'W101'"""
    if not article or not isinstance(article, str):
        return article
    trimmed = article.strip()
    if not trimmed:
        return article
    first = trimmed[0]
    if 'a' <= first <= 'z':
        return first.upper() + trimmed[1:]
    return trimmed


def format_article(article):
    """Digits-only articles are shown with an 'L' prefix: '021' -> 'L021'"""
    if not article:
        return ''
    if DIGITS_ONLY.match(article):
        return f"L{article}"
    return article


def children_category_id():
    return settings.WAREHOUSE.get('CHILDREN_CATEGORY_ID')


def is_valid_children_size(size_code):
    return extract_size_number(size_code) in settings.WAREHOUSE.get('CHILDREN_SIZES', [])


def get_size_order(size_name, category_id=None):
    """Sort key for sizes: numeric for children's sizes, XS..XXXL for adults"""
    if not size_name:
        return 0
    if category_id is not None and category_id == children_category_id():
        match = re.search(r'\d+', size_name)
        return int(match.group(0)) if match else 0
    name = size_name.lower()
    if 'xxxl' in name:
        return 7
    if 'xxl' in name:
        return 6
    if 'xl' in name:
        return 5
    if 'xs' in name:
        return 1
    if 's' in name:
        return 2
    if 'm' in name:
        return 3
    if 'l' in name:
        return 4
    match = re.search(r'\d+', size_name)
    return int(match.group(0)) if match else 0


def sort_sizes(sizes, children=False):
    """Children's sizes by height, adult letter sizes XS..XXXL first, anything else alphabetically"""
    children_sizes = settings.WAREHOUSE.get('CHILDREN_SIZES', [])

    def children_key(size):
        number = extract_size_number(size)
        if number in children_sizes:
            return (0, children_sizes.index(number), size)
        match = re.match(r'\d+', number)
        return (1, int(match.group(0)) if match else 0, size)

    def adult_key(size):
        upper = size.upper()
        if upper in ADULT_SIZES:
            return (0, ADULT_SIZES.index(upper), '')
        return (1, 0, size)

    return sorted(sizes, key=children_key if children else adult_key)


def sizes_for_category(category_id):
    """Size codes offered for a category: children's heights for the children category, letter sizes otherwise"""
    if category_id == children_category_id():
        return list(settings.WAREHOUSE.get('CHILDREN_SIZES', []))
    return ADULT_SIZES + SIZES_WITH_HEIGHT
