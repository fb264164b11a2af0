"""
Excluded-Language Classifier

Heuristically labels a text blob (track name, primary artist, album name)
as belonging to an excluded language. The default profile targets Turkish.

Signals are evaluated in order and each carries a weight:
1. Script-specific diacritics (strong)
2. Word-boundary lexicon hits (strong)
3. Surname patterns and well-known artist names
4. Market and record label hints

The classifier deliberately favours recall over precision. Short lexicon
words such as "o", "en" or "her" also occur in English titles, so some
non-Turkish tracks are filtered out. That over-filtering is the intended
trade-off; do not narrow the lexicon to "fix" it without a product decision.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Tuple

import structlog

logger = structlog.get_logger(__name__)

TURKISH_LEXICON: Tuple[str, ...] = (
    "bir", "bu", "ve", "ile", "var", "yok", "ben", "sen", "o", "biz", "siz",
    "onlar", "değil", "da", "ta", "ki", "gibi", "kadar", "daha", "en", "çok",
    "az", "büyük", "küçük", "güzel", "kötü", "iyi", "fena", "yeni", "eski",
    "genç", "yaşlı", "siyah", "beyaz", "kırmızı", "mavi", "yeşil", "sarı",
    "pembe", "mor", "turuncu", "kahverengi", "gri", "aşk", "sevgi", "kalp",
    "gönül", "hayat", "yaşam", "dünya", "evren", "zaman", "gün", "gece",
    "sabah", "akşam", "öğle", "yıl", "ay", "hafta", "saat", "dakika", "saniye",
    "anne", "baba", "kardeş", "arkadaş", "sevgili", "eş", "aile", "ev", "iş",
    "çalışmak", "okul", "okumak", "yazmak", "dinlemek", "görmek", "bakmak",
    "gelmek", "gitmek", "olmak", "etmek", "yapmak", "vermek", "almak",
    "bulunmak", "kalmak", "durmak", "başlamak", "bitirmek", "devam", "hep",
    "her", "hiç", "sadece", "ancak", "belki", "mutlaka", "kesinlikle", "tabii",
    "elbette", "nasıl", "neden", "niçin", "nerede", "ne", "kim", "hangi", "kaç",
    # ASCII-folded forms that survive in catalog metadata
    "degil", "cok", "guzel", "kotu", "ask", "gonul", "dunya", "aksam",
    "istanbul", "ankara", "izmir",
)

TURKISH_NAME_PATTERNS: Tuple[str, ...] = (
    r"\b\w{2,}o[ğg]lu\b",
    r"\b\w{3,}gil\b",
    r"\b\w{3,}soy\b",
)

TURKISH_ARTISTS: Tuple[str, ...] = (
    "tarkan", "sezen aksu", "sertab erener", "ajda pekkan", "baris manco",
    "cem karaca", "zeki muren", "muslum gurses", "ibrahim tatlises",
    "selda bagcan", "mor ve otesi", "duman", "teoman", "hadise", "murat boz",
    "mustafa sandal", "gulsen", "ezhel", "ceza", "sagopa kajmer", "mabel matiz",
    "athena", "edis", "kenan dogulu", "sila", "hande yener", "manga",
)

TURKISH_MARKET_TOKENS: Tuple[str, ...] = (r"\bTR\b", r"(?i)\bt[üu]rkiye\b", r"(?i)\bturkey\b")

TURKISH_LABELS: Tuple[str, ...] = (
    "avrupa muzik", "avrupa müzik", "poll production", "seyhan muzik",
    "seyhan müzik", "esen muzik", "pasaj muzik", "dogan music company",
    "doğan music company", "netd muzik", "netd müzik",
)


@dataclass
class LanguageProfile:
    """Data describing one excluded language."""
    name: str
    diacritics: str
    lexicon: Tuple[str, ...]
    name_patterns: Tuple[str, ...] = ()
    artists: Tuple[str, ...] = ()
    market_tokens: Tuple[str, ...] = ()
    labels: Tuple[str, ...] = ()
    # (diacritics, lexicon, names, market) weights
    weights: Tuple[float, float, float, float] = (1.0, 1.0, 0.6, 0.5)
    threshold: float = 0.5

    @classmethod
    def turkish(cls) -> "LanguageProfile":
        return cls(
            name="turkish",
            diacritics="çğıöşüÇĞİÖŞÜ",
            lexicon=TURKISH_LEXICON,
            name_patterns=TURKISH_NAME_PATTERNS,
            artists=TURKISH_ARTISTS,
            market_tokens=TURKISH_MARKET_TOKENS,
            labels=TURKISH_LABELS,
        )


@dataclass
class LanguageVerdict:
    """Classification outcome with the signals that produced it."""
    is_excluded: bool
    confidence: float
    signals: List[str] = field(default_factory=list)


class LanguageClassifier:
    """Layered heuristic classifier for one excluded language."""

    def __init__(self, profile: Optional[LanguageProfile] = None):
        self.profile = profile or LanguageProfile.turkish()
        self.logger = logger.bind(component="LanguageClassifier", language=self.profile.name)

        p = self.profile
        self._diacritics: Pattern = re.compile(f"[{re.escape(p.diacritics)}]")
        self._lexicon: Pattern = re.compile(
            r"\b(?:" + "|".join(re.escape(word) for word in p.lexicon) + r")\b",
            re.IGNORECASE
        )
        self._name_patterns: List[Pattern] = [re.compile(pattern, re.IGNORECASE) for pattern in p.name_patterns]
        self._artists: Pattern = re.compile(
            r"\b(?:" + "|".join(re.escape(artist) for artist in p.artists) + r")\b",
            re.IGNORECASE
        ) if p.artists else None
        self._market_tokens: List[Pattern] = [re.compile(token) for token in p.market_tokens]
        self._labels = tuple(label.lower() for label in p.labels)

    def classify(self, text: str) -> LanguageVerdict:
        """
        Classify a text blob.

        Strong signals (diacritics, lexicon) return immediately; weaker ones
        accumulate until the decision threshold.
        """
        if not text:
            return LanguageVerdict(is_excluded=False, confidence=0.0)

        diacritic_weight, lexicon_weight, name_weight, market_weight = self.profile.weights

        match = self._diacritics.search(text)
        if match:
            return LanguageVerdict(True, diacritic_weight, [f"diacritic:{match.group(0)}"])

        match = self._lexicon.search(text)
        if match:
            return LanguageVerdict(True, lexicon_weight, [f"lexicon:{match.group(0).lower()}"])

        signals: List[str] = []
        confidence = 0.0

        name_match = next((m for m in (p.search(text) for p in self._name_patterns) if m), None)
        if name_match is None and self._artists is not None:
            name_match = self._artists.search(text)
        if name_match:
            signals.append(f"name:{name_match.group(0).lower()}")
            confidence += name_weight

        lowered = text.lower()
        market_hit = next((m.group(0) for m in (p.search(text) for p in self._market_tokens) if m), None)
        if market_hit is None:
            market_hit = next((label for label in self._labels if label in lowered), None)
        if market_hit:
            signals.append(f"market:{market_hit.lower()}")
            confidence += market_weight

        confidence = min(1.0, confidence)
        return LanguageVerdict(confidence >= self.profile.threshold, confidence, signals)

    def is_excluded(self, text: str) -> bool:
        return self.classify(text).is_excluded

    def filter_tracks(self, tracks: list) -> list:
        """Drop tracks whose text blob is classified as excluded language."""
        kept = [track for track in tracks if not self.is_excluded(track.text_blob)]
        if len(kept) != len(tracks):
            self.logger.debug("Language filter applied", before=len(tracks), after=len(kept))
        return kept
