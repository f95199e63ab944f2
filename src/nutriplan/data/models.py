"""
Data models for the NutriPlan engine.

These models define the core entities used throughout the system:
- Recipe: catalog recipes with structured ingredients and nutrition per serving
- RecipeRef: resolved/unresolved references held by plan days
- MealPlan: multi-day plans produced by the plan assembler
- GroceryItem: merged shopping lines derived from a plan
- MealRecord / DailyRollup / NutritionRollup: nutrition tracking
- UserProfile / NutritionTarget: inputs and outputs of the target resolver
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

from ..canon import (
    DEFAULT_GROCERY_CATEGORY,
    DIETARY_PREFERENCES,
    MAX_DURATION_DAYS,
    MAX_SNACKS_PER_DAY,
    MEAL_SLOTS,
    MIN_DURATION_DAYS,
    PLAN_STATUSES,
    STATUS_TRANSITIONS,
    normalize_dietary_preference,
    normalize_slot,
)
from ..errors import InvalidPreferences, InvalidStatusTransition, RecipeNotFound


@dataclass
class Ingredient:
    """A structured recipe ingredient (quantity is per recipe serving)."""

    name: str
    quantity: float = 0.0
    unit: str = ""
    category: Optional[str] = None  # Shopping category (e.g., "produce", "dairy")

    def __str__(self) -> str:
        if self.quantity and self.unit:
            return f"{self.quantity:g} {self.unit} {self.name}"
        elif self.quantity:
            return f"{self.quantity:g} {self.name}"
        return self.name

    @property
    def normalized_name(self) -> str:
        """Trimmed, lowercase name used for matching and merging."""
        return self.name.strip().lower()

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Ingredient":
        return cls(
            name=data["name"],
            quantity=float(data.get("quantity") or 0.0),
            unit=data.get("unit") or "",
            category=data.get("category") or None,
        )


@dataclass
class NutritionInfo:
    """Calories (kcal) and macros (grams)."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fats: float = 0.0

    def __add__(self, other: "NutritionInfo") -> "NutritionInfo":
        return NutritionInfo(
            calories=self.calories + other.calories,
            protein=self.protein + other.protein,
            carbs=self.carbs + other.carbs,
            fats=self.fats + other.fats,
        )

    def __str__(self) -> str:
        return (
            f"{self.calories:.0f} kcal, {self.protein:.1f}g protein, "
            f"{self.carbs:.1f}g carbs, {self.fats:.1f}g fats"
        )

    def scale(self, factor: float) -> "NutritionInfo":
        return NutritionInfo(
            calories=self.calories * factor,
            protein=self.protein * factor,
            carbs=self.carbs * factor,
            fats=self.fats * factor,
        )

    def rounded(self, digits: int = 1) -> "NutritionInfo":
        return NutritionInfo(
            calories=round(self.calories, digits),
            protein=round(self.protein, digits),
            carbs=round(self.carbs, digits),
            fats=round(self.fats, digits),
        )

    def to_dict(self) -> Dict:
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fats": self.fats,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "NutritionInfo":
        if not data:
            return cls()
        return cls(
            calories=float(data.get("calories") or 0.0),
            protein=float(data.get("protein") or 0.0),
            carbs=float(data.get("carbs") or 0.0),
            fats=float(data.get("fats", data.get("fat")) or 0.0),
        )


@dataclass
class Recipe:
    """Catalog recipe. The engine only reads these."""

    id: str
    title: str
    nutrition: NutritionInfo  # Per serving
    ingredients: List[Ingredient] = field(default_factory=list)
    dietary_tags: List[str] = field(default_factory=list)
    prep_minutes: int = 0
    cook_minutes: int = 0
    difficulty: str = "medium"  # "easy", "medium", "hard"
    cuisine: Optional[str] = None
    meal_types: List[str] = field(default_factory=list)  # Slot-affinity hints
    servings: int = 1
    description: str = ""

    def __post_init__(self):
        """Normalize identifiers and hint vocabularies."""
        self.id = str(self.id)
        self.dietary_tags = [tag.strip().lower() for tag in self.dietary_tags if tag and tag.strip()]
        slots = []
        for meal_type in self.meal_types:
            slot = normalize_slot(meal_type)
            if slot and slot not in slots:
                slots.append(slot)
        self.meal_types = slots

    def has_tag(self, tag: str) -> bool:
        return tag.strip().lower() in self.dietary_tags

    def contains_ingredient(self, term: str) -> bool:
        """
        Check whether any ingredient name contains the given term.

        Matching is case-insensitive on trimmed names, so excluding "peanut"
        also excludes "peanut butter".
        """
        needle = term.strip().lower()
        if not needle:
            return False
        return any(needle in ing.normalized_name for ing in self.ingredients)

    def suits_slot(self, slot: str) -> bool:
        """Recipes without hints are usable in any slot."""
        return not self.meal_types or slot in self.meal_types

    def __str__(self) -> str:
        return f"{self.title} ({self.nutrition.calories:.0f} kcal)"

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "nutrition": self.nutrition.to_dict(),
            "ingredients": [ing.to_dict() for ing in self.ingredients],
            "dietary_tags": self.dietary_tags,
            "prep_minutes": self.prep_minutes,
            "cook_minutes": self.cook_minutes,
            "difficulty": self.difficulty,
            "cuisine": self.cuisine,
            "meal_types": self.meal_types,
            "servings": self.servings,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Recipe":
        """Create Recipe from dictionary."""
        return cls(
            id=str(data["id"]),
            title=data.get("title") or data.get("name", ""),
            description=data.get("description") or "",
            nutrition=NutritionInfo.from_dict(data.get("nutrition")),
            ingredients=[Ingredient.from_dict(i) for i in data.get("ingredients", [])],
            dietary_tags=list(data.get("dietary_tags", [])),
            prep_minutes=int(data.get("prep_minutes") or 0),
            cook_minutes=int(data.get("cook_minutes") or 0),
            difficulty=data.get("difficulty") or "medium",
            cuisine=data.get("cuisine"),
            meal_types=list(data.get("meal_types", [])),
            servings=int(data.get("servings") or 1),
        )


# ==================== Recipe references ====================

@dataclass(frozen=True)
class ResolvedRecipe:
    """A plan entry whose recipe is embedded."""

    recipe: Recipe

    @property
    def recipe_id(self) -> str:
        return self.recipe.id

    def to_dict(self) -> Dict:
        return {"recipe_id": self.recipe.id, "recipe": self.recipe.to_dict()}


@dataclass(frozen=True)
class UnresolvedRecipe:
    """A plan entry that only knows its recipe id."""

    recipe_id: str

    def to_dict(self) -> Dict:
        return {"recipe_id": self.recipe_id}


RecipeRef = Union[ResolvedRecipe, UnresolvedRecipe]
RecipeResolver = Callable[[str], Optional[Recipe]]


def recipe_ref_from_dict(data: Dict) -> RecipeRef:
    """Embedded recipes load as resolved refs, bare ids as unresolved."""
    if isinstance(data.get("recipe"), dict):
        return ResolvedRecipe(Recipe.from_dict(data["recipe"]))
    if "recipe_id" in data:
        return UnresolvedRecipe(str(data["recipe_id"]))
    raise ValueError("Recipe reference must contain either 'recipe' or 'recipe_id'")


def resolve_ref(ref: RecipeRef, resolver: Optional[RecipeResolver] = None) -> Recipe:
    """
    Get the Recipe behind a reference.

    Raises:
        RecipeNotFound: If the ref is unresolved and the resolver cannot find it
    """
    if isinstance(ref, ResolvedRecipe):
        return ref.recipe
    recipe = resolver(ref.recipe_id) if resolver else None
    if recipe is None:
        raise RecipeNotFound(ref.recipe_id)
    return recipe


# ==================== Profile and targets ====================

@dataclass
class UserProfile:
    """Physiological profile used to resolve nutrition targets."""

    age: int
    sex: str  # "male", "female", "other"
    height_cm: float
    weight_kg: float
    activity_level: str = "sedentary"
    goal: str = "maintenance"  # "weight_loss", "maintenance", "muscle_gain"
    user_id: int = 1

    def to_dict(self) -> Dict:
        return {
            "user_id": self.user_id,
            "age": self.age,
            "sex": self.sex,
            "height_cm": self.height_cm,
            "weight_kg": self.weight_kg,
            "activity_level": self.activity_level,
            "goal": self.goal,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "UserProfile":
        return cls(
            user_id=data.get("user_id", 1),
            age=data.get("age"),
            sex=data.get("sex", data.get("gender")),
            height_cm=data.get("height_cm", data.get("height")),
            weight_kg=data.get("weight_kg", data.get("weight")),
            activity_level=data.get("activity_level", "sedentary"),
            goal=data.get("goal", "maintenance"),
        )


@dataclass(frozen=True)
class NutritionTarget:
    """Daily targets; immutable for one generation request."""

    daily_calories: float
    protein: float
    carbs: float
    fats: float
    bmr: Optional[float] = None
    maintenance_calories: Optional[float] = None
    bmi: Optional[float] = None

    def as_nutrition(self) -> NutritionInfo:
        return NutritionInfo(
            calories=self.daily_calories,
            protein=self.protein,
            carbs=self.carbs,
            fats=self.fats,
        )

    def to_dict(self) -> Dict:
        return {
            "daily_calories": self.daily_calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fats": self.fats,
            "bmr": self.bmr,
            "maintenance_calories": self.maintenance_calories,
            "bmi": self.bmi,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "NutritionTarget":
        return cls(
            daily_calories=float(data["daily_calories"]),
            protein=float(data["protein"]),
            carbs=float(data["carbs"]),
            fats=float(data["fats"]),
            bmr=data.get("bmr"),
            maintenance_calories=data.get("maintenance_calories"),
            bmi=data.get("bmi"),
        )


# ==================== Generation preferences ====================

# Accepted aliases for the web/API layer
_PREFERENCE_ALIASES = {
    "durationDays": "duration_days",
    "duration": "duration_days",
    "dietaryPreference": "dietary_preference",
    "excludedIngredients": "excluded_ingredients",
    "cuisine": "cuisines",
    "maxPrepMinutes": "max_prep_minutes",
    "maxPrepTime": "max_prep_minutes",
    "maxCookMinutes": "max_cook_minutes",
    "maxCookTime": "max_cook_minutes",
    "snacksPerDay": "snacks_per_day",
}


def _optional_int(value, name: str) -> Optional[int]:
    """Coerce JSON numbers and numeric strings ("30") to int. None and "" stay None."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidPreferences(f"{name} must be an integer")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidPreferences(f"{name} must be an integer, got {value!r}") from None


@dataclass
class GenerationPreferences:
    """User-chosen constraints for one generation request."""

    duration_days: int = 7
    dietary_preference: Optional[str] = None
    excluded_ingredients: List[str] = field(default_factory=list)
    cuisines: List[str] = field(default_factory=list)  # Empty = any
    max_prep_minutes: Optional[int] = None  # None or 0 = no ceiling
    max_cook_minutes: Optional[int] = None
    snacks_per_day: Optional[int] = None  # None = config default

    @property
    def dietary_filter(self) -> Optional[str]:
        """Tag that recipes must carry, or None."""
        return normalize_dietary_preference(self.dietary_preference)

    def validate(self) -> None:
        """
        Check ranges and vocabularies.

        Raises:
            InvalidPreferences: On any malformed field
        """
        for name in ("duration_days", "max_prep_minutes", "max_cook_minutes", "snacks_per_day"):
            value = getattr(self, name)
            if name == "duration_days" and value is None:
                raise InvalidPreferences("duration_days must be an integer")
            if value is not None and (not isinstance(value, int) or isinstance(value, bool)):
                raise InvalidPreferences(f"{name} must be an integer")
        if not MIN_DURATION_DAYS <= self.duration_days <= MAX_DURATION_DAYS:
            raise InvalidPreferences(
                f"duration_days must be between {MIN_DURATION_DAYS} and {MAX_DURATION_DAYS}, got {self.duration_days}"
            )
        if self.dietary_preference is not None:
            lowered = self.dietary_preference.strip().lower().replace("_", "-")
            if lowered not in DIETARY_PREFERENCES:
                raise InvalidPreferences(f"Unknown dietary preference '{self.dietary_preference}'")
        for name in ("max_prep_minutes", "max_cook_minutes"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise InvalidPreferences(f"{name} cannot be negative")
        if self.snacks_per_day is not None and not 0 <= self.snacks_per_day <= MAX_SNACKS_PER_DAY:
            raise InvalidPreferences(f"snacks_per_day must be between 0 and {MAX_SNACKS_PER_DAY}")

    def active_filters(self) -> Dict:
        """Only the filters that actually constrain the catalog."""
        filters = {}
        if self.dietary_filter:
            filters["dietary_preference"] = self.dietary_filter
        if self.excluded_ingredients:
            filters["excluded_ingredients"] = list(self.excluded_ingredients)
        if self.cuisines:
            filters["cuisines"] = list(self.cuisines)
        if self.max_prep_minutes:
            filters["max_prep_minutes"] = self.max_prep_minutes
        if self.max_cook_minutes:
            filters["max_cook_minutes"] = self.max_cook_minutes
        return filters

    def to_dict(self) -> Dict:
        return {
            "duration_days": self.duration_days,
            "dietary_preference": self.dietary_preference,
            "excluded_ingredients": list(self.excluded_ingredients),
            "cuisines": list(self.cuisines),
            "max_prep_minutes": self.max_prep_minutes,
            "max_cook_minutes": self.max_cook_minutes,
            "snacks_per_day": self.snacks_per_day,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "GenerationPreferences":
        """Create preferences from snake_case or camelCase keys."""
        data = {_PREFERENCE_ALIASES.get(key, key): value for key, value in (data or {}).items()}

        def _as_list(value) -> List[str]:
            if not value:
                return []
            if isinstance(value, str):
                return [item.strip() for item in value.split(",") if item.strip()]
            return [str(item).strip() for item in value if str(item).strip()]

        return cls(
            duration_days=_optional_int(data.get("duration_days", 7), "duration_days"),
            dietary_preference=data.get("dietary_preference"),
            excluded_ingredients=_as_list(data.get("excluded_ingredients")),
            cuisines=_as_list(data.get("cuisines")),
            max_prep_minutes=_optional_int(data.get("max_prep_minutes"), "max_prep_minutes"),
            max_cook_minutes=_optional_int(data.get("max_cook_minutes"), "max_cook_minutes"),
            snacks_per_day=_optional_int(data.get("snacks_per_day"), "snacks_per_day"),
        )


# ==================== Plans ====================

def _empty_meals() -> Dict[str, List[RecipeRef]]:
    return {slot: [] for slot in MEAL_SLOTS}


@dataclass
class PlanDay:
    """One day of a meal plan."""

    day_number: int
    date: str  # ISO format: "2025-01-20"
    meals: Dict[str, List[RecipeRef]] = field(default_factory=_empty_meals)
    nutrition: NutritionInfo = field(default_factory=NutritionInfo)  # Realized, not requested
    notes: Optional[str] = None
    within_tolerance: bool = True

    def refs(self) -> Iterator[Tuple[str, RecipeRef]]:
        """Yield (slot, ref) pairs in slot order."""
        for slot in MEAL_SLOTS:
            for ref in self.meals.get(slot, []):
                yield slot, ref

    def recipe_ids(self) -> List[str]:
        return [ref.recipe_id for _, ref in self.refs()]

    def to_dict(self) -> Dict:
        return {
            "day_number": self.day_number,
            "date": self.date,
            "meals": {slot: [ref.to_dict() for ref in self.meals.get(slot, [])] for slot in MEAL_SLOTS},
            "nutrition": self.nutrition.to_dict(),
            "notes": self.notes,
            "within_tolerance": self.within_tolerance,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "PlanDay":
        meals = _empty_meals()
        for slot, refs in (data.get("meals") or {}).items():
            canonical = normalize_slot(slot)
            if canonical:
                meals[canonical] = [recipe_ref_from_dict(ref) for ref in refs]
        return cls(
            day_number=data["day_number"],
            date=data["date"],
            meals=meals,
            nutrition=NutritionInfo.from_dict(data.get("nutrition")),
            notes=data.get("notes"),
            within_tolerance=data.get("within_tolerance", True),
        )


@dataclass
class NutritionSummary:
    """Plan-level rollup of realized daily nutrition."""

    total_calories: float = 0.0
    total_protein: float = 0.0
    total_carbs: float = 0.0
    total_fats: float = 0.0
    average_daily_calories: float = 0.0
    average_daily_protein: float = 0.0
    average_daily_carbs: float = 0.0
    average_daily_fats: float = 0.0
    days_outside_tolerance: int = 0

    @classmethod
    def from_days(cls, days: List[PlanDay]) -> "NutritionSummary":
        if not days:
            return cls()
        total = NutritionInfo()
        for day in days:
            total = total + day.nutrition
        count = len(days)
        return cls(
            total_calories=round(total.calories, 1),
            total_protein=round(total.protein, 1),
            total_carbs=round(total.carbs, 1),
            total_fats=round(total.fats, 1),
            average_daily_calories=round(total.calories / count),
            average_daily_protein=round(total.protein / count, 1),
            average_daily_carbs=round(total.carbs / count, 1),
            average_daily_fats=round(total.fats / count, 1),
            days_outside_tolerance=sum(1 for day in days if not day.within_tolerance),
        )

    def to_dict(self) -> Dict:
        return dict(self.__dict__)

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "NutritionSummary":
        return cls(**(data or {}))


@dataclass
class MealPlan:
    """Multi-day meal plan produced by the plan assembler."""

    user_id: int
    title: str
    duration_days: int
    preferences: GenerationPreferences
    target: NutritionTarget
    days: List[PlanDay]
    nutrition_summary: NutritionSummary
    start_date: str  # ISO format
    status: str = "draft"
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None
    id: Optional[str] = None  # Generated on save

    @property
    def end_date(self) -> str:
        return self.days[-1].date if self.days else self.start_date

    def recipe_occurrences(self) -> Dict[str, int]:
        """
        Count how many times each recipe appears across all days.

        Returns:
            Mapping recipe_id -> count, in first-appearance order
        """
        counts: Dict[str, int] = {}
        for day in self.days:
            for recipe_id in day.recipe_ids():
                counts[recipe_id] = counts.get(recipe_id, 0) + 1
        return counts

    def transition_to(self, status: str) -> None:
        """
        Move the plan along draft -> active -> completed.

        Raises:
            InvalidStatusTransition: For unknown statuses or backwards moves
        """
        if status not in PLAN_STATUSES:
            raise InvalidStatusTransition(f"Unknown plan status '{status}'")
        if status not in STATUS_TRANSITIONS[self.status]:
            raise InvalidStatusTransition(f"Cannot move plan from '{self.status}' to '{status}'")
        self.status = status
        self.updated_at = datetime.now()

    def replace_days(self, days: List[PlanDay]) -> None:
        """Regeneration replaces the whole day list, never patches it."""
        if len(days) != self.duration_days:
            raise ValueError(f"Expected {self.duration_days} days, got {len(days)}")
        self.days = list(days)
        self.nutrition_summary = NutritionSummary.from_days(self.days)
        self.start_date = self.days[0].date
        self.updated_at = datetime.now()

    def get_summary(self) -> str:
        return f"{self.title}: {self.start_date} to {self.end_date} ({self.status})"

    def __str__(self) -> str:
        return self.get_summary()

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "duration_days": self.duration_days,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "status": self.status,
            "preferences": self.preferences.to_dict(),
            "target": self.target.to_dict(),
            "days": [day.to_dict() for day in self.days],
            "nutrition_summary": self.nutrition_summary.to_dict(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "MealPlan":
        """Create MealPlan from dictionary."""
        return cls(
            id=data.get("id"),
            user_id=data.get("user_id", 1),
            title=data["title"],
            duration_days=data["duration_days"],
            start_date=data["start_date"],
            status=data.get("status", "draft"),
            preferences=GenerationPreferences.from_dict(data.get("preferences")),
            target=NutritionTarget.from_dict(data["target"]),
            days=[PlanDay.from_dict(d) for d in data.get("days", [])],
            nutrition_summary=NutritionSummary.from_dict(data.get("nutrition_summary")),
            created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else datetime.now(),
            updated_at=datetime.fromisoformat(data["updated_at"]) if data.get("updated_at") else None,
        )


# ==================== Grocery ====================

@dataclass
class GroceryItem:
    """Single line on a grocery list."""

    name: str
    quantity: float
    unit: str
    category: str = DEFAULT_GROCERY_CATEGORY
    purchased: bool = False
    recipe_sources: List[str] = field(default_factory=list)  # Titles of contributing recipes
    manual: bool = False  # Added by hand, survives rebuilds

    @property
    def merge_key(self) -> Tuple[str, str]:
        """Lines merge only when both name and unit match. Names ignore case, units do not (T != t)."""
        return (self.name.strip().lower(), self.unit.strip())

    @property
    def formatted_quantity(self) -> str:
        return f"{self.quantity:g} {self.unit}".strip()

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "category": self.category,
            "purchased": self.purchased,
            "recipe_sources": list(self.recipe_sources),
            "manual": self.manual,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "GroceryItem":
        return cls(
            name=data["name"],
            quantity=float(data.get("quantity") or 0.0),
            unit=data.get("unit") or "",
            category=data.get("category") or DEFAULT_GROCERY_CATEGORY,
            purchased=bool(data.get("purchased", False)),
            recipe_sources=list(data.get("recipe_sources", [])),
            manual=bool(data.get("manual", False)),
        )


# ==================== Nutrition tracking ====================

@dataclass
class MealRecord:
    """A dated meal, either from a plan or logged ad hoc."""

    date: str  # ISO date
    meal_type: str
    nutrition: NutritionInfo
    recipe_id: Optional[str] = None
    name: Optional[str] = None
    notes: Optional[str] = None
    id: Optional[int] = None

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "date": self.date,
            "meal_type": self.meal_type,
            "nutrition": self.nutrition.to_dict(),
            "recipe_id": self.recipe_id,
            "name": self.name,
            "notes": self.notes,
        }


@dataclass
class DailyRollup:
    """Summed nutrition for one calendar date."""

    date: str
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fats: float = 0.0
    meal_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.meal_count == 0

    def add(self, nutrition: NutritionInfo) -> None:
        self.calories += nutrition.calories
        self.protein += nutrition.protein
        self.carbs += nutrition.carbs
        self.fats += nutrition.fats
        self.meal_count += 1

    def as_nutrition(self) -> NutritionInfo:
        return NutritionInfo(self.calories, self.protein, self.carbs, self.fats)

    def to_dict(self) -> Dict:
        return {
            "date": self.date,
            "calories": round(self.calories, 1),
            "protein": round(self.protein, 1),
            "carbs": round(self.carbs, 1),
            "fats": round(self.fats, 1),
            "meal_count": self.meal_count,
        }


@dataclass
class NutritionRollup:
    """Per-date rollups plus range totals and averages."""

    days: List[DailyRollup]
    totals: NutritionInfo
    averages: NutritionInfo
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "start_date": self.start_date,
            "end_date": self.end_date,
            "days": [day.to_dict() for day in self.days],
            "totals": self.totals.rounded().to_dict(),
            "averages": self.averages.rounded().to_dict(),
        }
