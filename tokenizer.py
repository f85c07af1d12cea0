"""Word-frequency extraction for English and Chinese chat text.

English words are lower-cased runs of ASCII letters.  Chinese text has
no word delimiters, so every 2- to 4-character window of each run of
CJK characters is counted as a candidate term.
"""

from __future__ import annotations

import re
from collections import Counter

MIN_NGRAM = 2
MAX_NGRAM = 4

# Applied in order: bold spans must be gone before the italic pattern runs.
_MARKUP_PATTERNS = (
    re.compile(r"```[\s\S]*?```"),
    re.compile(r"`[^`]+`"),
    re.compile(r"\*\*[^*]+\*\*"),
    re.compile(r"\*[^*]+\*"),
    re.compile(r"https?://\S+"),
    re.compile(r"<[^>]+>"),
)

_LATIN_WORD = re.compile(r"[a-z]{2,}")
_CJK_RUN = re.compile(r"[一-龥]+")

STOP_WORDS = frozenset([
    # English
    "a", "an", "the", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could", "should",
    "may", "might", "must", "can", "need", "dare", "ought", "used", "to",
    "i", "me", "my", "myself", "we", "our", "ours", "ourselves",
    "you", "your", "yours", "yourself", "yourselves",
    "he", "him", "his", "himself", "she", "her", "hers", "herself",
    "it", "its", "itself", "they", "them", "their", "theirs", "themselves",
    "what", "which", "who", "whom", "this", "that", "these", "those",
    "and", "but", "if", "or", "because", "as", "until", "while",
    "of", "at", "by", "for", "with", "about", "against", "between",
    "into", "through", "during", "before", "after", "above", "below",
    "from", "up", "down", "in", "out", "on", "off", "over", "under",
    "again", "further", "then", "once", "here", "there", "when", "where",
    "why", "how", "all", "each", "few", "more", "most", "other", "some",
    "such", "no", "nor", "not", "only", "own", "same", "so", "than",
    "too", "very", "s", "t", "just", "don", "now", "ll", "m", "ve", "d", "re",
    "ok", "okay", "yes", "yeah", "nah", "oh", "ah", "um", "uh",
    "hm", "hmm", "huh", "well", "like", "really",
    # Chinese
    "的", "了", "是", "在", "我", "你", "他", "她", "它", "们", "这", "那",
    "有", "和", "与", "或", "但", "而", "因", "为", "所", "以", "也", "就",
    "都", "要", "会", "能", "可", "到", "着", "被", "让", "给", "从", "向",
    "把", "对", "很", "太", "更", "最", "不", "没", "无", "非", "别", "还",
    "又", "再", "已", "曾", "将", "才", "刚", "正", "地", "得", "过",
    "来", "去", "上", "下", "里", "外", "前", "后", "中", "间", "时", "候",
    "什么", "怎么", "如何", "哪", "哪里", "哪儿", "谁", "几", "多少",
    "呢", "吗", "吧", "啊", "呀", "哦", "噢", "嗯", "哼", "唉", "哎",
    "一", "二", "三", "四", "五", "六", "七", "八", "九", "十", "百", "千", "万",
    "个", "只", "些", "每", "某", "各", "另", "其", "此", "彼",
])


def strip_markup(text: str) -> str:
    """Remove code, emphasis, URLs and tags so they contribute no tokens."""
    for pattern in _MARKUP_PATTERNS:
        text = pattern.sub("", text)
    return text


def cjk_ngrams(run: str) -> list[str]:
    """Return every substring of *run* with length MIN_NGRAM..MAX_NGRAM.

    Ordered by length, then offset.
    """
    grams = []
    for size in range(MIN_NGRAM, min(MAX_NGRAM, len(run)) + 1):
        for start in range(len(run) - size + 1):
            grams.append(run[start:start + size])
    return grams


def tokenize_and_count(text: str) -> Counter:
    """Count the frequency terms of a single message.

    Args:
        text: Raw message text.  Non-string input is treated as empty.

    Returns:
        A Counter mapping each English word or Chinese n-gram to its
        number of occurrences in *text*.  Stop words are excluded.
    """
    counts: Counter = Counter()
    if not text or not isinstance(text, str):
        return counts

    cleaned = strip_markup(text)

    for word in _LATIN_WORD.findall(cleaned.lower()):
        if word not in STOP_WORDS:
            counts[word] += 1

    for run in _CJK_RUN.findall(cleaned):
        for gram in cjk_ngrams(run):
            if gram not in STOP_WORDS:
                counts[gram] += 1

    return counts
