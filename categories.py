import json
import logging
import os
from dataclasses import asdict, dataclass

logger = logging.getLogger(__name__)

OTHER = "Other"


@dataclass(frozen=True)
class Category:
    name: str
    value: str


DEFAULT_CATEGORIES = [
    Category('Food', 'food'),
    Category('Groceries', 'groceries'),
    Category('Transport', 'transport'),
    Category('Clothes', 'clothes'),
    Category('Entertainment', 'entertainment'),
    Category('Healthcare', 'healthcare'),
    Category('Utilities', 'utilities'),
    Category('Shopping', 'shopping'),
    Category('Education', 'education'),
    Category(OTHER, 'other'),
]

OTHER_CATEGORY = DEFAULT_CATEGORIES[-1]


class DuplicateCategoryError(ValueError):
    """Raised when a category with the same normalized key already exists"""

    def __init__(self, name):
        super().__init__(f"Category '{name}' already exists.")
        self.name = name


def normalize_key(name):
    """Lowercase the name and drop every whitespace character"""
    return ''.join(name.lower().split())


class CategoryStore:
    """Category registry shared by every command handler.

    Subclasses only decide where the list lives; matching rules are the same
    for all of them.
    """

    def __init__(self, categories=None):
        self._categories = list(DEFAULT_CATEGORIES if categories is None else categories)

    def all(self):
        return list(self._categories)

    def names(self):
        return [cat.name for cat in self._categories]

    def __len__(self):
        return len(self._categories)

    def __contains__(self, name):
        key = normalize_key(name)
        return any(cat.value == key for cat in self._categories)

    def add(self, name):
        """Register a new category, raising DuplicateCategoryError if its key is taken"""
        name = name.strip()
        key = normalize_key(name)
        if any(cat.value == key for cat in self._categories):
            raise DuplicateCategoryError(name)

        category = Category(name, key)
        updated = self._categories + [category]
        self._persist(updated)
        self._categories = updated
        logger.info(f"Added category '{name}' ({key}), {len(self._categories)} total")
        return category

    def resolve(self, raw):
        """Match a display name or key case-insensitively, falling back to Other"""
        if not raw:
            return OTHER_CATEGORY
        wanted = raw.strip().lower()
        for cat in self._categories:
            if cat.value == wanted or cat.name.lower() == wanted:
                return cat
        return OTHER_CATEGORY

    def prompt_string(self):
        """Quoted, comma separated names for Gemini prompts"""
        return ', '.join(f"'{name}'" for name in self.names())

    def _persist(self, categories):
        pass


class InMemoryCategoryStore(CategoryStore):
    """Process-local registry; additions are lost on restart"""


class JsonCategoryStore(CategoryStore):
    """Registry backed by a JSON file so added categories survive restarts"""

    def __init__(self, path):
        self.path = path
        super().__init__(self._load())

    def _load(self):
        if not os.path.exists(self.path):
            logger.info(f"📝 No categories file at {self.path}, starting from defaults")
            return list(DEFAULT_CATEGORIES)

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            categories = [Category(item['name'], item['value']) for item in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"❌ Error loading categories from {self.path}: {e}")
            return list(DEFAULT_CATEGORIES)
        logger.info(f"✅ Loaded {len(categories)} categories from {self.path}")
        return categories

    def _persist(self, categories):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump([asdict(cat) for cat in categories], f, indent=2, ensure_ascii=False)


def create_category_store(categories_file=None):
    """Pick the durable store when a file is configured, else the in-memory one"""
    if categories_file:
        return JsonCategoryStore(categories_file)
    return InMemoryCategoryStore()
