import re
from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Query, Session
from recipe_api.models.recipe import Recipe

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Client-facing sort keys -> columns; anything else falls back to DEFAULT_SORT_FIELD
SORT_FIELDS = {
    "title": Recipe.title,
    "averageRating": Recipe.average_rating,
    "reviewCount": Recipe.review_count,
    "prepTime": Recipe.prep_time,
    "cookTime": Recipe.cook_time,
    "createdAt": Recipe.created_at,
}
DEFAULT_SORT_FIELD = "createdAt"

_WORD_RE = re.compile(r"\w+")


def _words(text: Optional[str]) -> set:
    return {word.lower() for word in _WORD_RE.findall(text or "")}


class RecipeService:
    """Read-side queries over the recipes table"""

    @staticmethod
    def resolve_sort(sort_by: Optional[str], order: Optional[str]) -> list:
        column = SORT_FIELDS.get(sort_by or "", SORT_FIELDS[DEFAULT_SORT_FIELD])
        primary = column.asc() if (order or "").lower() == "asc" else column.desc()
        # Fixed tiebreak keeps pages stable when the sort column has duplicates
        return [primary, Recipe.id.desc()]

    @staticmethod
    def paginate(query: Query, page: int, limit: int) -> List[Recipe]:
        return query.offset((page - 1) * limit).limit(limit).all()

    @staticmethod
    def get(db: Session, recipe_id: str) -> Optional[Recipe]:
        return db.query(Recipe).filter(Recipe.id == recipe_id).first()

    @staticmethod
    def list_recipes(
        db: Session,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        sort_by: Optional[str] = None,
        order: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Tuple[List[Recipe], int]:
        query = db.query(Recipe)
        if category:
            query = query.filter(Recipe.category == category)
        total = query.count()
        query = query.order_by(*RecipeService.resolve_sort(sort_by, order))
        return RecipeService.paginate(query, page, limit), total

    @staticmethod
    def recent(db: Session, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> List[Recipe]:
        query = db.query(Recipe).order_by(*RecipeService.resolve_sort("createdAt", "desc"))
        return RecipeService.paginate(query, page, limit)

    @staticmethod
    def filter_by_steps(db: Session, steps: int) -> List[Recipe]:
        return (
            db.query(Recipe)
            .filter(Recipe.step_count == steps)
            .order_by(*RecipeService.resolve_sort(None, None))
            .all()
        )

    @staticmethod
    def filter_by_tags(
        db: Session,
        tags: Iterable[str],
        match_all: bool = False,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Tuple[List[Recipe], int]:
        """
        Recipes carrying any (or, with match_all, every) of the given tags.

        Tags live in a JSON column, so matching happens here rather than in SQL.
        """
        wanted = {tag.strip().lower() for tag in tags if tag and tag.strip()}
        recipes = db.query(Recipe).order_by(*RecipeService.resolve_sort(None, None)).all()

        matched = []
        for recipe in recipes:
            recipe_tags = {str(tag).lower() for tag in recipe.tags or []}
            if match_all:
                if wanted <= recipe_tags:
                    matched.append(recipe)
            elif wanted & recipe_tags:
                matched.append(recipe)

        offset = (page - 1) * limit
        return matched[offset:offset + limit], len(matched)

    @staticmethod
    def distinct_categories(db: Session) -> List[str]:
        rows = (
            db.query(Recipe.category)
            .filter(Recipe.category.isnot(None))
            .distinct()
            .order_by(Recipe.category)
            .all()
        )
        return [category for (category,) in rows]

    @staticmethod
    def distinct_tags(db: Session) -> List[str]:
        tags = set()
        for (recipe_tags,) in db.query(Recipe.tags).all():
            tags.update(str(tag) for tag in recipe_tags or [])
        return sorted(tags)

    @staticmethod
    def distinct_ingredients(db: Session) -> List[str]:
        names = set()
        for (ingredients,) in db.query(Recipe.ingredients).all():
            if isinstance(ingredients, dict):
                names.update(ingredients.keys())
        return sorted(names)

    @staticmethod
    def search(db: Session, term: str) -> List[Recipe]:
        """
        Word search over title, description and category.

        A recipe matches when any search word appears as a whole word in one of
        those fields. When nothing matches, fall back to a case-insensitive
        substring match of the whole term on the title. Results are unioned and
        de-duplicated, word matches first.
        """
        term = term.strip()
        words = _words(term)
        order = RecipeService.resolve_sort(None, None)

        primary: List[Recipe] = []
        if words:
            # Narrow with a substring filter in SQL, then confirm whole-word matches
            conditions = []
            for word in words:
                conditions.extend([
                    Recipe.title.icontains(word, autoescape=True),
                    Recipe.description.icontains(word, autoescape=True),
                    Recipe.category.icontains(word, autoescape=True),
                ])
            candidates = db.query(Recipe).filter(or_(*conditions)).order_by(*order).all()
            primary = [
                recipe for recipe in candidates
                if words & (_words(recipe.title) | _words(recipe.description) | _words(recipe.category))
            ]

        fallback: List[Recipe] = []
        if not primary:
            fallback = (
                db.query(Recipe)
                .filter(Recipe.title.icontains(term, autoescape=True))
                .order_by(*order)
                .all()
            )

        results: Dict[str, Recipe] = {}
        for recipe in primary + fallback:
            results.setdefault(recipe.id, recipe)
        return list(results.values())


recipe_service = RecipeService()
