"""Request bodies for the tracker API."""

from pydantic import BaseModel, Field

from nutrilog.domain.entries import EditedItem, MacroTotals
from nutrilog.domain.profile import ActivityLevel, Goal, Sex, UserProfile


class SubmitPhotoRequest(BaseModel):
    image_base64: str = Field(min_length=1)
    image_ref: str | None = None


class CommitJobRequest(BaseModel):
    items: list[EditedItem] | None = None


class EntryItemsRequest(BaseModel):
    items: list[EditedItem]
    image_ref: str | None = None


class SavedMealRequest(BaseModel):
    name: str = Field(min_length=1)


class FavoriteRequest(BaseModel):
    name: str = Field(min_length=1)
    calories: float = Field(default=0, ge=0)
    protein_g: float = Field(default=0, ge=0)
    carbs_g: float = Field(default=0, ge=0)
    fat_g: float = Field(default=0, ge=0)

    def totals(self) -> MacroTotals:
        return MacroTotals(
            calories=self.calories,
            protein_g=self.protein_g,
            carbs_g=self.carbs_g,
            fat_g=self.fat_g,
        )


class ProfileRequest(BaseModel):
    """Profile fields accepted from clients."""

    name: str | None = None
    age: int = Field(gt=0, lt=130)
    sex: Sex
    height_cm: float = Field(gt=0)
    weight_kg: float = Field(gt=0)
    goal_weight_kg: float = Field(gt=0)
    goal: Goal
    activity_level: ActivityLevel
    weekly_change_kg: float | None = None

    def to_profile(self) -> UserProfile:
        return UserProfile(
            name=self.name,
            age=self.age,
            sex=self.sex,
            height_cm=self.height_cm,
            weight_kg=self.weight_kg,
            goal_weight_kg=self.goal_weight_kg,
            goal=self.goal,
            activity_level=self.activity_level,
            weekly_change_kg=self.weekly_change_kg,
        )
