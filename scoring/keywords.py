"""Meal-name keyword tables. Matching is a case-sensitive substring test."""

from types import MappingProxyType
from typing import Mapping, Tuple


KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    # natto, miso, yogurt, kimchi, pickles, cheese, amazake
    "fermented": ("納豆", "味噌", "ヨーグルト", "キムチ", "漬物", "チーズ", "甘酒"),
    # berries, green tea/matcha, coffee drinks, cacao, red wine, purple yam, black beans
    "polyphenol": (
        "ブルーベリー", "ベリー", "緑茶", "抹茶", "コーヒー", "カフェ", "ラテ", "スタバ",
        "ダークチョコ", "チョコ", "カカオ", "ココア", "赤ワイン", "紫芋", "黒豆",
    ),
})

FERMENTED = KEYWORDS["fermented"]
POLYPHENOL = KEYWORDS["polyphenol"]
