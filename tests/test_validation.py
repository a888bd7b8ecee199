import pytest
from pydantic import ValidationError

from cinesocial.schemas.auth import UserRegister
from cinesocial.schemas.profile import ProfileUpdate
from cinesocial.schemas.review import CommentCreate, ReviewCreate, ReviewUpdate
from cinesocial.schemas.watchlist import CustomListCreate, CustomListUpdate


def test_review_text_keeps_basic_markup():
    review = ReviewCreate(movie_id="m1", rating=7, review_text="<b>Loved</b> it <span>really</span>")
    assert review.review_text == "<b>Loved</b> it really"


@pytest.mark.parametrize("payload", [
    "<script>alert(1)</script>",
    "<a href='javascript:alert(1)'>x</a>",
    "<img src=x onerror=alert(1)>",
    "<iframe src='https://evil'></iframe>",
])
def test_script_payloads_are_rejected(payload):
    with pytest.raises(ValidationError):
        CommentCreate(comment_text=payload)


def test_list_name_rejects_scripts():
    with pytest.raises(ValidationError):
        CustomListCreate(name="<script>x</script>")


def test_empty_comment_is_rejected():
    with pytest.raises(ValidationError):
        CommentCreate(comment_text="")


@pytest.mark.parametrize("password", ["alllowercase1", "ALLUPPERCASE1", "NoDigitsHere", "Sh0rt"])
def test_weak_passwords_are_rejected(password):
    with pytest.raises(ValidationError):
        UserRegister(email="carol@example.com", password=password, username="carol")


def test_username_pattern():
    with pytest.raises(ValidationError):
        UserRegister(email="carol@example.com", password="Password123", username="carol smith")


@pytest.mark.parametrize("schema, payload", [
    (CustomListUpdate, {"is_public": None}),
    (CustomListUpdate, {"name": None}),
    (ReviewUpdate, {"is_public": None}),
    (ReviewUpdate, {"rating": None}),
    (ProfileUpdate, {"username": None}),
])
def test_patch_rejects_null_for_required_columns(schema, payload):
    with pytest.raises(ValidationError):
        schema.model_validate(payload)


def test_patch_allows_clearing_optional_fields():
    assert CustomListUpdate.model_validate({"description": None}).model_dump(exclude_unset=True) == {"description": None}
    assert ProfileUpdate.model_validate({"bio": None}).bio is None
