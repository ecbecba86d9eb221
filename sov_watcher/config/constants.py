"""
Configuration constants for SOV Watcher.

This module contains the fixed keyword lists and weight tables shared by the
text normalizer, entity extractor, mention scorer and aggregator, so the
heuristics stay in one place instead of being repeated in every component.
"""

# Words that make a text span "important" for weighting purposes
IMPORTANCE_KEYWORDS = (
    "best",
    "top",
    "leading",
    "popular",
    "recommended",
    "trusted",
    "reliable",
)

# Keywords that mark a context as important when scoring confidence
IMPORTANT_CONTEXT_KEYWORDS = IMPORTANCE_KEYWORDS + (
    "alternative",
    "competitor",
    "similar",
    "compare",
    "vs",
    "versus",
    "review",
    "rating",
    "score",
    "rank",
    "ranking",
    "list",
    "choice",
    "preferred",
    "favorite",
    "go-to",
    "primary",
    "main",
    "major",
)

# Navigational words typical of page titles and headings
NAVIGATION_WORDS = (
    "welcome",
    "about",
    "services",
    "contact",
    "home",
    "products",
    "solutions",
)

HEADING_KEYWORDS = (
    "features",
    "benefits",
    "advantages",
    "why",
    "how",
    "what",
    "when",
    "where",
    "types",
    "categories",
    "options",
    "alternatives",
)

COMPARISON_KEYWORDS = (
    "vs",
    "versus",
    "compared",
    "comparison",
    "alternative",
    "alternatives",
    "instead",
    "rather",
    "better",
    "worse",
    "similar",
    "different",
    "same",
    "both",
    "either",
    "neither",
    "while",
    "whereas",
    "however",
)

RECOMMENDATION_KEYWORDS = (
    "recommend",
    "recommended",
    "suggest",
    "advise",
    "prefer",
    "choose",
    "select",
    "best",
    "top",
    "leading",
    "preferred",
    "favorite",
    "go-to",
    "should",
    "must",
    "need",
    "essential",
    "important",
    "crucial",
)

REVIEW_KEYWORDS = (
    "review",
    "reviews",
    "rating",
    "score",
    "opinion",
    "experience",
    "test",
    "evaluate",
    "assess",
    "analyze",
    "examine",
    "check",
    "verify",
    "pros",
    "cons",
    "advantages",
    "disadvantages",
    "benefits",
    "drawbacks",
)

# Tokens that mark an entity string as a company name
COMPANY_SUFFIXES = (
    "inc",
    "corp",
    "llc",
    "ltd",
    "company",
    "group",
    "solutions",
    "systems",
)

# Wider suffix list used when looking for "X Corp"-style entity candidates
COMPANY_NAME_SUFFIXES = (
    "Inc",
    "Corp",
    "Corporation",
    "Company",
    "Co",
    "LLC",
    "Ltd",
    "Limited",
    "Group",
    "Solutions",
    "Systems",
    "Technologies",
    "Tech",
    "Software",
    "Services",
    "Consulting",
    "Partners",
    "Labs",
    "Industries",
    "International",
    "Global",
    "Digital",
    "Media",
    "Marketing",
    "Agency",
    "Studio",
    "Network",
    "Platform",
    "Marketplace",
)

# Words that hint an entity names a product or company
BRAND_INDICATORS = (
    "platform",
    "service",
    "tool",
    "software",
    "app",
    "application",
    "solution",
    "system",
    "technology",
    "tech",
    "digital",
    "online",
    "web",
    "mobile",
    "cloud",
    "saas",
    "api",
    "sdk",
    "framework",
)

DOMAIN_SUFFIXES = ("com", "org", "net", "io", "co", "tech", "app", "ai", "cloud")

# Tokens that never count as a brand on their own
STOP_WORDS = frozenset(
    {
        "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
        "by", "from", "up", "about", "into", "through", "during", "before",
        "after", "above", "below", "between", "among", "within", "without",
        "this", "that", "these", "those", "is", "are", "was", "were", "be",
        "been", "being", "have", "has", "had", "do", "does", "did", "will",
        "would", "could", "should", "may", "might", "can", "must", "shall",
        "what", "which", "who", "when", "where", "why", "how", "here", "there",
        "they", "their", "them", "its", "our", "your", "you", "also", "some",
        "many", "most", "more", "other", "such", "each", "all", "any", "both",
        "however", "while", "if", "then", "than", "so", "yes", "not",
    }
)

# Multipliers applied by MentionScorer, keyed by context type
CONTEXT_WEIGHTS = {
    "title": 3.0,
    "heading": 2.5,
    "firstParagraph": 2.0,
    "listItem": 1.5,
    "comparison": 1.8,
    "recommendation": 2.2,
    "review": 1.7,
    "normal": 1.0,
}

SENTIMENT_MULTIPLIERS = {
    "positive": 1.2,
    "negative": 0.8,
    "neutral": 1.0,
}

# Static category-keyword lookup used for topic relevance
DEFAULT_TOPIC_KEYWORDS = (
    "best",
    "top",
    "tool",
    "platform",
    "software",
    "service",
    "solution",
    "recommend",
    "review",
    "compare",
)

TOPIC_KEYWORDS = {
    "crm": (
        "crm",
        "sales",
        "pipeline",
        "customer",
        "contacts",
        "leads",
        "deals",
        "automation",
        "platform",
        "software",
    ),
    "marketing": (
        "marketing",
        "campaign",
        "email",
        "seo",
        "content",
        "audience",
        "analytics",
        "social",
        "ads",
        "platform",
    ),
    "food-delivery": (
        "food",
        "delivery",
        "restaurant",
        "order",
        "app",
        "grocery",
        "meal",
        "courier",
        "fast",
        "service",
    ),
    "ecommerce": (
        "store",
        "shop",
        "ecommerce",
        "online",
        "checkout",
        "payments",
        "products",
        "marketplace",
        "shipping",
        "platform",
    ),
    "collaboration": (
        "team",
        "chat",
        "meeting",
        "video",
        "collaboration",
        "messaging",
        "remote",
        "workspace",
        "communication",
        "tool",
    ),
}

# Provenance tags and their weights (only generated answers are populated)
PROVENANCE_WEIGHTS = {
    "generated-answer": 1.0,
}

# Well-known brands that count as "likely brands" without further evidence
COMMON_BRANDS = frozenset(
    {
        "google", "microsoft", "apple", "amazon", "facebook", "meta", "twitter",
        "linkedin", "netflix", "spotify", "uber", "lyft", "airbnb", "slack",
        "zoom", "dropbox", "salesforce", "adobe", "oracle", "ibm", "intel",
        "cisco", "dell", "hp", "samsung", "sony", "nike", "adidas", "coca-cola",
        "pepsi", "mcdonalds", "starbucks", "walmart", "target", "home depot",
        "lowes", "best buy",
    }
)
