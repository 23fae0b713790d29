"""Product type taxonomy for packaged foods.

Each entry has:
- a detection pattern (applied to name + subcategory + category of the scanned product)
- must_contain keywords: a candidate must mention at least one of them
- exclude keywords: a candidate mentioning any of them is rejected (exclusion wins)
- a fallback search phrase for full-text catalog search and external discovery
- external category tags (Open Food Facts) used by discovery and category inference

Important:
- Evaluation order is significant: the first matching entry wins.
- The table is immutable module-level data; nothing mutates it at runtime.
- Keywords are matched as lowercase substrings, NOT regex.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class ProductType:
    """One taxonomy entry."""

    id: str
    label: str
    pattern: re.Pattern[str]
    must_contain: tuple[str, ...]
    exclude: tuple[str, ...]
    fallback_search_phrase: str
    external_categories: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.must_contain:
            raise ValueError(f"Product type {self.id} needs at least one must_contain keyword")


def _type(
    id: str,
    label: str,
    pattern: str,
    *,
    must: tuple[str, ...],
    exclude: tuple[str, ...] = (),
    search: str,
    categories: tuple[str, ...] = (),
) -> ProductType:
    return ProductType(
        id=id,
        label=label,
        pattern=re.compile(pattern, re.IGNORECASE),
        must_contain=must,
        exclude=exclude,
        fallback_search_phrase=search,
        external_categories=categories,
    )


# Ordered: more specific entries precede the generic ones they overlap with
# (fruity cereal before cereal, granola bar before chips, cookies before chips).
PRODUCT_TYPES: tuple[ProductType, ...] = (
    _type(
        "fruit-snacks", "Fruit Snacks",
        r"fruit\s*snack|fruit\s*roll|fruit\s*leather|fruit\s*gumm",
        must=("fruit",),
        exclude=("nut", "seed", "chip", "water", "chestnut"),
        search="fruit snacks organic",
        categories=("en:fruit-snacks", "en:fruit-based-snacks"),
    ),
    _type(
        "candy-fruity", "Fruity Candy",
        r"skittle|sour.*candy|fruity.*candy|jelly.*bean|gumm(?!y\s*bear)|chewy.*candy|starburst",
        must=("candy", "gumm", "sweet", "fruit", "sour", "chew"),
        exclude=("chocolate", "cocoa", "bar"),
        search="organic gummy candy fruit",
        categories=("en:candies", "en:confectioneries", "en:gummy-candies"),
    ),
    _type(
        "candy-chocolate", "Chocolate",
        r"chocolate\s*(bar|candy|piece)|m&m|cocoa.*candy|truffle",
        must=("chocolate", "cocoa", "cacao"),
        exclude=("milk", "syrup", "powder", "cookie"),
        search="organic dark chocolate bar",
        categories=("en:chocolates", "en:dark-chocolates", "en:chocolate-bars"),
    ),
    _type(
        "candy-licorice", "Licorice",
        r"licorice|twizzler",
        must=("licorice", "liquorice"),
        search="organic licorice",
        categories=("en:liquorice", "en:candies"),
    ),
    _type(
        "cereal-fruity", "Fruity Cereal",
        r"froot|fruity.*cereal|fruit.*loop|toucan|berry.*cereal",
        must=("cereal", "flake", "loop", "puff", "crunch", "o's"),
        exclude=("bar", "milk", "yogurt"),
        search="organic fruity cereal kids",
        categories=("en:breakfast-cereals",),
    ),
    _type(
        "cereal-chocolate", "Chocolate Cereal",
        r"cocoa.*puff|chocolate.*cereal|cocoa.*crispies|count.*chocula",
        must=("cereal", "chocolate", "cocoa", "puff", "crunch"),
        exclude=("bar", "milk", "cookie"),
        search="organic chocolate cereal",
        categories=("en:breakfast-cereals", "en:chocolate-cereals"),
    ),
    _type(
        "cereal-cinnamon", "Cinnamon Cereal",
        r"cinnamon.*crunch|cinnamon.*toast|cinnamon.*cereal",
        must=("cereal", "cinnamon", "crunch", "flake"),
        exclude=("bar", "oatmeal"),
        search="organic cinnamon cereal",
        categories=("en:breakfast-cereals",),
    ),
    _type(
        "cereal-general", "Cereal",
        r"cereal|loops|flakes|puffs|crunch|charms|cheerio",
        must=("cereal", "flake", "puff", "crunch", "o's", "grain"),
        exclude=("bar", "milk"),
        search="organic cereal whole grain",
        categories=("en:breakfast-cereals",),
    ),
    _type(
        "granola-bar", "Granola Bar",
        r"granola\s*bar|chewy\s*bar|oat\s*bar|nature.*valley",
        must=("bar", "granola"),
        exclude=("cereal", "protein"),
        search="organic granola bar",
        categories=("en:cereal-bars", "en:granola-bars"),
    ),
    _type(
        "protein-bar", "Protein Bar",
        r"protein\s*bar|energy\s*bar|rxbar|clif",
        must=("bar", "protein", "energy"),
        exclude=("cereal", "granola"),
        search="organic protein bar clean",
        categories=("en:energy-bars", "en:protein-bars"),
    ),
    _type(
        "cookies", "Cookies",
        r"cookie|biscuit|chips\s*ahoy|oreo|nutter",
        must=("cookie", "biscuit"),
        exclude=("cream", "ice", "dough"),
        search="organic cookies",
        categories=("en:biscuits-and-cakes", "en:cookies"),
    ),
    _type(
        "chips", "Chips",
        r"chip|crisp|tortilla\s*chip|dorito|cheeto|lay'?s|pringles|frito",
        must=("chip", "crisp", "tortilla"),
        exclude=("dip", "salsa", "chocolate", "cookie"),
        search="organic chips",
        categories=("en:chips-and-fries", "en:tortilla-chips", "en:potato-chips"),
    ),
    _type(
        "crackers", "Crackers",
        r"cracker|goldfish|cheez-?it|ritz",
        must=("cracker",),
        exclude=("soup", "dip", "cookie"),
        search="organic crackers whole grain",
        categories=("en:crackers",),
    ),
    _type(
        "soda", "Soda",
        r"soda|cola|sprite|fanta|mountain\s*dew|dr\s*pepper|pepsi|coke",
        must=("soda", "sparkling", "cola", "carbonated", "prebiotic", "fizz"),
        exclude=("candy", "gummy"),
        search="prebiotic soda sparkling",
        categories=("en:sodas", "en:carbonated-drinks"),
    ),
    _type(
        "juice", "Juice",
        r"juice|lemonade|fruit\s*drink|capri\s*sun|kool",
        must=("juice", "lemonade", "nectar"),
        exclude=("gummy", "snack", "bar"),
        search="organic 100 fruit juice",
        categories=("en:fruit-juices", "en:juices-and-nectars"),
    ),
    _type(
        "sports-drink", "Sports Drink",
        r"sport.*drink|electrolyte|gatorade|powerade",
        must=("electrolyte", "sport", "hydrat"),
        exclude=("protein", "bar"),
        search="natural electrolyte drink",
        categories=("en:sports-drinks",),
    ),
    _type(
        "energy-drink", "Energy Drink",
        r"energy\s*drink|monster|red\s*bull|celsius|bang",
        must=("energy", "sparkling"),
        exclude=("bar", "candy"),
        search="clean energy drink natural",
        categories=("en:energy-drinks",),
    ),
    _type(
        "mac-cheese", "Mac & Cheese",
        r"mac.*cheese|macaroni|velveeta",
        must=("mac", "cheese", "macaroni"),
        exclude=("pizza", "sauce"),
        search="organic mac cheese",
        categories=("en:macaroni-and-cheese", "en:pasta-dishes"),
    ),
    _type(
        "yogurt", "Yogurt",
        r"yogurt|yoghurt|yoplait|dannon|activia|chobani",
        must=("yogurt", "yoghurt"),
        exclude=("bar", "drink", "tube"),
        search="organic whole milk yogurt",
        categories=("en:yogurts",),
    ),
    _type(
        "ice-cream", "Ice Cream",
        r"ice\s*cream|gelato|frozen\s*dessert|haagen|ben.*jerry",
        must=("ice cream", "gelato", "frozen"),
        exclude=("sandwich", "bar", "cone"),
        search="organic ice cream",
        categories=("en:ice-creams",),
    ),
    _type(
        "bread", "Bread",
        r"bread|wonder\s*bread|sara\s*lee|\bbuns?\b|loaf",
        must=("bread", "loaf", "grain", "wheat", "sprouted"),
        exclude=("crumb", "stick"),
        search="organic whole grain bread sprouted",
        categories=("en:breads",),
    ),
    _type(
        "pasta-sauce", "Pasta Sauce",
        r"pasta\s*sauce|marinara|tomato\s*sauce|prego|ragu|bertolli",
        must=("sauce", "marinara", "tomato"),
        exclude=("pizza", "salsa"),
        search="organic marinara sauce",
        categories=("en:pasta-sauces", "en:tomato-sauces"),
    ),
    _type(
        "ketchup", "Ketchup",
        r"ketchup|catsup",
        must=("ketchup",),
        search="organic ketchup unsweetened",
        categories=("en:ketchup",),
    ),
    _type(
        "dressing", "Salad Dressing",
        r"dressing|vinaigrette|ranch|caesar",
        must=("dressing", "ranch", "vinaigrette"),
        search="organic salad dressing",
        categories=("en:salad-dressings",),
    ),
    _type(
        "mayo", "Mayo",
        r"mayo|miracle\s*whip",
        must=("mayo", "aioli"),
        search="avocado oil mayo organic",
        categories=("en:mayonnaises",),
    ),
    _type(
        "peanut-butter", "Peanut Butter",
        r"peanut\s*butter|nut\s*butter|almond\s*butter|jif|skippy",
        must=("peanut", "almond", "butter", "nut"),
        exclude=("cup", "candy", "bar"),
        search="organic peanut butter",
        categories=("en:peanut-butters", "en:nut-butters"),
    ),
    _type(
        "ramen", "Ramen",
        r"ramen|instant\s*noodle|maruchan",
        must=("ramen", "noodle"),
        search="organic ramen noodles",
        categories=("en:instant-noodles",),
    ),
    _type(
        "soup", "Soup",
        r"soup|broth|stock|campbell|progresso",
        must=("soup", "broth", "stock", "stew", "chowder"),
        exclude=("cracker", "noodle"),
        search="organic soup low sodium",
        categories=("en:soups",),
    ),
    _type(
        "hot-dog", "Hot Dogs",
        r"hot\s*dog|frank|wiener|oscar\s*mayer",
        must=("hot dog", "frank", "wiener", "sausage", "uncured"),
        search="uncured organic hot dogs",
        categories=("en:sausages", "en:hot-dogs"),
    ),
    _type(
        "frozen-pizza", "Frozen Pizza",
        r"frozen.*pizza|pizza.*frozen|digiorno|red\s*baron|totino",
        must=("pizza",),
        exclude=("roll", "bite", "sauce"),
        search="organic frozen pizza",
        categories=("en:frozen-pizzas",),
    ),
    _type(
        "frozen-meal", "Frozen Meals",
        r"frozen\s*meal|frozen\s*dinner|tv\s*dinner|stouffer|banquet|hot\s*pocket",
        must=("frozen", "meal", "dinner", "entree"),
        exclude=("pizza", "ice"),
        search="organic frozen meal",
        categories=("en:frozen-meals",),
    ),
    _type(
        "popcorn", "Popcorn",
        r"popcorn|pop\s*corn",
        must=("popcorn",),
        search="organic popcorn",
        categories=("en:popcorn",),
    ),
    _type(
        "pretzel", "Pretzels",
        r"pretzel",
        must=("pretzel",),
        search="organic pretzels",
        categories=("en:pretzels",),
    ),
    _type(
        "oatmeal", "Oatmeal",
        r"oatmeal|instant\s*oats|quaker",
        must=("oat", "oatmeal", "porridge"),
        exclude=("bar", "cookie"),
        search="organic oatmeal rolled oats",
        categories=("en:oatmeals",),
    ),
    _type(
        "toaster-pastry", "Toaster Pastries",
        r"toaster.*pastry|pop.*tart",
        must=("pastry", "toaster", "tart"),
        search="organic toaster pastry",
        categories=("en:pastries",),
    ),
    _type(
        "syrup", "Syrup",
        r"syrup|aunt\s*jemima|mrs\s*butterworth",
        must=("syrup", "maple"),
        exclude=("cough", "medicine"),
        search="organic maple syrup pure",
        categories=("en:syrups", "en:maple-syrups"),
    ),
    _type(
        "chocolate-milk", "Chocolate Milk",
        r"chocolate\s*milk|nesquik",
        must=("chocolate", "milk"),
        exclude=("candy", "bar", "cookie"),
        search="organic chocolate milk",
        categories=("en:chocolate-milks",),
    ),
)

_TYPES_BY_ID: dict[str, ProductType] = {t.id: t for t in PRODUCT_TYPES}


def product_text(*parts: str | None) -> str:
    """Lowercased text blob from product fields (None parts skipped)."""
    return " ".join(p for p in parts if p).lower()


def classify(text: str | None) -> ProductType | None:
    """Return the first taxonomy entry whose detection pattern matches `text`."""
    if not text:
        return None
    for product_type in PRODUCT_TYPES:
        if product_type.pattern.search(text):
            return product_type
    return None


def matches_type(
    candidate_text: str | None,
    product_type: ProductType,
    *,
    category_text: str | None = None,
) -> bool:
    """Check that a candidate belongs to `product_type`.

    True iff at least one must_contain keyword appears (in `candidate_text`,
    or in `category_text` when given) AND no exclude keyword appears in
    `candidate_text`. Exclusion always wins.
    """
    text = (candidate_text or "").lower()
    if any(kw in text for kw in product_type.exclude):
        return False
    if any(kw in text for kw in product_type.must_contain):
        return True
    if category_text:
        cat = category_text.lower()
        return any(kw in cat for kw in product_type.must_contain)
    return False


def infer_type_from_category(category: str | None) -> ProductType | None:
    """Infer a type from a category tag such as "en:potato-chips".

    Matches when the tag and one of a type's external categories contain each other.
    """
    if not category:
        return None
    cat = re.sub(r"^en:", "", category.lower().strip())
    if not cat:
        return None
    for product_type in PRODUCT_TYPES:
        for external in product_type.external_categories:
            clean = external.replace("en:", "")
            if cat in clean or clean in cat:
                return product_type
    return None


def get_product_type(type_id: str) -> ProductType | None:
    """Look up a taxonomy entry by id."""
    return _TYPES_BY_ID.get(type_id)
