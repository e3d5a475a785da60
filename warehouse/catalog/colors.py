"""
Color names and their display hex codes.

``get_hex_from_name`` is deterministic: the same name always yields the same
code, whether it comes from the dictionary, a shade rule or the hash-based
fallback. Colors created without an explicit hex code get it from here.
"""
import math
import re

DEFAULT_HEX = '#808080'
UNKNOWN_COLOR_NAME = 'Неизвестный'

COLOR_DICTIONARY = {
    # Основные цвета
    'Белый': '#FFFFFF',
    'Черный': '#000000',
    'Красный': '#FF0000',
    'Зеленый': '#00FF00',
    'Синий': '#0000FF',
    'Желтый': '#FFFF00',
    'Розовый': '#FFC0CB',
    'Оранжевый': '#FFA500',
    'Фиолетовый': '#800080',
    'Коричневый': '#A52A2A',
    'Серый': '#808080',
    'Бежевый': '#F5DEB3',
    'Бирюзовый': '#40E0D0',
    'Изумрудный': '#50C878',
    'Светло-голубой': '#87CEEB',
    'Серый меланж': '#C0C0C0',
    'Ассорти': '#FFD700',
    'Терракотовый': '#E2725B',
    'спрут': '#8B4513',
    'лоза': '#228B22',

    # Вариации написания
    'Розово': '#FFC0CB',
    'Розов': '#FFC0CB',
    'Зайчики на розовом': '#FFB6C1',
    'Зайчики': '#FFB6C1',
    'Розовое': '#FFC0CB',
    'Розовая': '#FFC0CB',

    # Оттенки розового
    'Светло-розовый': '#FFB6C1',
    'Темно-розовый': '#FF1493',
    'Нежно-розовый': '#FFE4E1',
    'Ярко-розовый': '#FF69B4',

    # Оттенки синего
    'Голубой': '#87CEEB',
    'Небесно-голубой': '#87CEEB',
    'Темно-синий': '#000080',
    'Светло-синий': '#ADD8E6',

    # Оттенки зеленого
    'Салатовый': '#7FFF00',
    'Темно-зеленый': '#006400',
    'Светло-зеленый': '#90EE90',
    'Лаймовый': '#32CD32',

    # Дополнительные цвета
    'Хаки': '#78866B',
    'Малиновый': '#DC143C',
    'Пастельно-голубой': '#E0F6FF',
}

ENGLISH_COLOR_NAMES = {
    # Основные цвета
    'red': 'Красный',
    'blue': 'Синий',
    'green': 'Зеленый',
    'yellow': 'Желтый',
    'black': 'Черный',
    'white': 'Белый',
    'gray': 'Серый',
    'grey': 'Серый',
    'brown': 'Коричневый',
    'orange': 'Оранжевый',
    'purple': 'Фиолетовый',
    'pink': 'Розовый',

    # Оттенки
    'light': 'Светлый',
    'dark': 'Темный',
    'bright': 'Яркий',
    'pale': 'Бледный',
    'deep': 'Глубокий',
    'soft': 'Мягкий',
    'vivid': 'Яркий',
    'muted': 'Приглушенный',

    'navy': 'Темно-синий',
    'maroon': 'Темно-красный',
    'olive': 'Оливковый',
    'lime': 'Лаймовый',
    'teal': 'Бирюзовый',
    'cyan': 'Голубой',
    'magenta': 'Пурпурный',
    'indigo': 'Индиго',
    'violet': 'Фиолетовый',
    'coral': 'Коралловый',
    'salmon': 'Лососевый',
    'beige': 'Бежевый',
    'cream': 'Кремовый',
    'ivory': 'Слоновая кость',
    'gold': 'Золотой',
    'silver': 'Серебряный',
    'bronze': 'Бронзовый',
    'copper': 'Медный',

    'assorted': 'Ассорти',
    'multicolor': 'Многоцветный',
    'rainbow': 'Радужный',
    'neutral': 'Нейтральный',
    'natural': 'Натуральный',
    'classic': 'Классический',
    'modern': 'Современный',
    'vintage': 'Винтажный',
}

HEX_PATTERN = re.compile(r'^#[0-9A-Fa-f]{6}$')
CYRILLIC_PATTERN = re.compile(r'[а-яё]', re.IGNORECASE)


def _has(name, *needles):
    return any(needle in name for needle in needles)


def _shade_rule(name):
    """Hex for names like "ярко-розовый" or "dark green"; None when no rule applies"""
    light = _has(name, 'светло', 'light')
    dark = _has(name, 'темно', 'dark')
    pink = _has(name, 'розов', 'pink')
    blue = _has(name, 'син', 'голуб', 'blue')
    green = _has(name, 'зелен', 'green')
    red = _has(name, 'красн', 'red')

    if pink:
        if _has(name, 'ярко', 'bright'):
            return '#FF69B4'
        if _has(name, 'нежно', 'soft'):
            return '#FFE4E1'
        if light:
            return '#FFB6C1'
        if dark:
            return '#FF1493'
        return '#FFC0CB'

    if light:
        if blue:
            return '#87CEEB'
        if green:
            return '#90EE90'
        if red:
            return '#FF6B6B'

    if blue:
        return '#000080' if dark else '#0000FF'
    if green:
        return '#006400' if dark else '#00FF00'
    if red:
        return '#8B0000' if dark else '#FF0000'
    return None


def _to_int32(value):
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def name_hash(name):
    """Classic ``hash * 31 + char`` string hash over UTF-16 code units with 32-bit shifts"""
    encoded = name.encode('utf-16-le')
    result = 0
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        result = code_unit + (_to_int32(_to_int32(result) << 5) - result)
    return result


def _hue_to_rgb(p, q, t):
    if t < 0:
        t += 1
    if t > 1:
        t -= 1
    if t < 1 / 6:
        return p + (q - p) * 6 * t
    if t < 1 / 2:
        return q
    if t < 2 / 3:
        return p + (q - p) * (2 / 3 - t) * 6
    return p


def _channel_hex(value):
    return format(int(math.floor(value * 255 + 0.5)), '02x')


def hsl_to_hex(hue, saturation, lightness):
    h = hue / 360
    s = saturation / 100
    l = lightness / 100
    if s == 0:
        r = g = b = l
    else:
        q = l * (1 + s) if l < 0.5 else l + s - l * s
        p = 2 * l - q
        r = _hue_to_rgb(p, q, h + 1 / 3)
        g = _hue_to_rgb(p, q, h)
        b = _hue_to_rgb(p, q, h - 1 / 3)
    return f"#{_channel_hex(r)}{_channel_hex(g)}{_channel_hex(b)}"


def generate_color_from_name(name):
    """Stable pseudo-random but saturated color for names nothing else recognises"""
    value = abs(name_hash(name))
    hue = value % 360
    saturation = 70 + value % 30
    lightness = 45 + value % 20
    return hsl_to_hex(hue, saturation, lightness)


def get_hex_from_name(name):
    if not name or not isinstance(name, str):
        return DEFAULT_HEX

    if name in COLOR_DICTIONARY:
        return COLOR_DICTIONARY[name]

    lowered = name.lower()
    shade = _shade_rule(lowered)
    if shade:
        return shade

    for color_name, hex_code in COLOR_DICTIONARY.items():
        key = color_name.lower()
        if key in lowered or lowered in key:
            return hex_code

    return generate_color_from_name(name)


def normalize_color_name(name):
    """Bring a color name to its dictionary spelling when one matches"""
    if not name or not isinstance(name, str):
        return UNKNOWN_COLOR_NAME
    if name in COLOR_DICTIONARY:
        return name
    lowered = name.lower()
    for color_name in COLOR_DICTIONARY:
        key = color_name.lower()
        if key in lowered or lowered in key:
            return color_name
    return name


def translate_color_name(name):
    """English color names (and "modifier color" pairs) to Russian; Russian names pass through"""
    if not name:
        return ''
    if CYRILLIC_PATTERN.search(name):
        return name
    normalized = name.strip().lower()
    if normalized in ENGLISH_COLOR_NAMES:
        return ENGLISH_COLOR_NAMES[normalized]
    words = normalized.split()
    if len(words) == 2:
        modifier = ENGLISH_COLOR_NAMES.get(words[0])
        color = ENGLISH_COLOR_NAMES.get(words[1])
        if modifier and color:
            return f"{modifier} {color}"
    return name


def is_valid_hex(value):
    return bool(value) and bool(HEX_PATTERN.match(value))


def dictionary_colors():
    return [{'name': name, 'hex': hex_code} for name, hex_code in COLOR_DICTIONARY.items()]
