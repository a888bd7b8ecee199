import pytest

from cinesocial.models.watchlist import CustomList, CustomListMovie
from cinesocial.schemas.watchlist import CustomListUpdate
from cinesocial.services.custom_list_service import CustomListService
from cinesocial.utils.errors import (
    is_not_found_error,
    is_policy_error,
    is_unique_constraint_error,
    unwrap_response,
)

from conftest import create_movie, stamp_in_order


@pytest.fixture
def scifi(db_session, alice):
    return unwrap_response(CustomListService.create_custom_list(
        db_session, alice.id, "Sci-Fi Collection", "Space and robots", is_public=True
    ))


def test_create_list_defaults_private(db_session, alice):
    custom_list = unwrap_response(CustomListService.create_custom_list(db_session, alice.id, "Secret", ""))

    assert custom_list.is_public is False
    assert custom_list.description is None
    assert custom_list.user_id == alice.id


def test_list_with_movies_in_insertion_order(db_session, alice, scifi):
    films = [create_movie(db_session, imdb_id=f"tt300000{i}", title=f"Film {i}") for i in range(3)]
    entries = [
        unwrap_response(CustomListService.add_movie_to_custom_list(db_session, alice.id, scifi.id, film.id)).id
        for film in films
    ]
    stamp_in_order(db_session, CustomListMovie, entries, column="added_at")

    full = unwrap_response(CustomListService.get_custom_list_by_id(db_session, scifi.id))

    assert [e.movie.title for e in full.entries] == ["Film 0", "Film 1", "Film 2"]
    assert all(e.added_at is not None for e in full.entries)


def test_movie_counts(db_session, alice, scifi, movie):
    empty = unwrap_response(CustomListService.create_custom_list(db_session, alice.id, "Empty"))
    CustomListService.add_movie_to_custom_list(db_session, alice.id, scifi.id, movie.id)

    lists = unwrap_response(CustomListService.get_user_custom_lists(db_session, alice.id, viewer_id=alice.id))

    counts = {entry.id: entry.movie_count for entry in lists}
    assert counts == {scifi.id: 1, empty.id: 0}
    assert lists[0].id == empty.id


def test_duplicate_entry_is_unique_error(db_session, alice, scifi, movie):
    CustomListService.add_movie_to_custom_list(db_session, alice.id, scifi.id, movie.id)
    response = CustomListService.add_movie_to_custom_list(db_session, alice.id, scifi.id, movie.id)

    assert is_unique_constraint_error(response.error)


def test_only_owner_may_add_movies(db_session, bob, scifi, movie):
    response = CustomListService.add_movie_to_custom_list(db_session, bob.id, scifi.id, movie.id)

    assert is_policy_error(response.error)
    assert db_session.query(CustomListMovie).count() == 0


def test_delete_list_cascades_to_entries(db_session, alice, scifi, movie):
    CustomListService.add_movie_to_custom_list(db_session, alice.id, scifi.id, movie.id)

    assert CustomListService.delete_custom_list(db_session, alice.id, scifi.id).error is None

    assert db_session.query(CustomListMovie).filter(CustomListMovie.list_id == scifi.id).count() == 0
    assert is_not_found_error(CustomListService.get_custom_list_by_id(db_session, scifi.id, alice.id).error)


def test_non_owner_delete_is_a_no_op(db_session, bob, scifi):
    assert CustomListService.delete_custom_list(db_session, bob.id, scifi.id).error is None
    assert db_session.query(CustomList).count() == 1


def test_private_lists_visible_to_owner_only(db_session, alice, bob):
    private = unwrap_response(CustomListService.create_custom_list(db_session, alice.id, "Guilty pleasures"))

    assert is_not_found_error(CustomListService.get_custom_list_by_id(db_session, private.id, bob.id).error)
    assert is_not_found_error(CustomListService.get_custom_list_by_id(db_session, private.id).error)
    assert unwrap_response(CustomListService.get_custom_list_by_id(db_session, private.id, alice.id)).id == private.id

    assert unwrap_response(CustomListService.get_user_custom_lists(db_session, alice.id, viewer_id=bob.id)) == []


def test_public_lists_feed(db_session, alice, bob, scifi, movie):
    hidden = unwrap_response(CustomListService.create_custom_list(db_session, bob.id, "Hidden"))
    bobs = unwrap_response(CustomListService.create_custom_list(db_session, bob.id, "Noir", is_public=True))
    CustomListService.add_movie_to_custom_list(db_session, bob.id, bobs.id, movie.id)
    stamp_in_order(db_session, CustomList, [scifi.id, hidden.id, bobs.id])

    feed = unwrap_response(CustomListService.get_public_custom_lists(db_session))

    assert [(entry.name, entry.user.username, entry.movie_count) for entry in feed] == [
        ("Noir", "bob", 1),
        ("Sci-Fi Collection", "alice", 0),
    ]

    assert len(unwrap_response(CustomListService.get_public_custom_lists(db_session, limit=1))) == 1


def test_update_list(db_session, alice, bob, scifi):
    updated = unwrap_response(CustomListService.update_custom_list(
        db_session, alice.id, scifi.id, CustomListUpdate(name="Sci-Fi", is_public=False)
    ))
    assert (updated.name, updated.description, updated.is_public) == ("Sci-Fi", "Space and robots", False)

    response = CustomListService.update_custom_list(db_session, bob.id, scifi.id, CustomListUpdate(name="Mine now"))
    assert is_not_found_error(response.error)


def test_remove_movie_from_list(db_session, alice, bob, scifi, movie):
    CustomListService.add_movie_to_custom_list(db_session, alice.id, scifi.id, movie.id)

    CustomListService.remove_movie_from_custom_list(db_session, bob.id, scifi.id, movie.id)
    assert db_session.query(CustomListMovie).count() == 1

    CustomListService.remove_movie_from_custom_list(db_session, alice.id, scifi.id, movie.id)
    assert db_session.query(CustomListMovie).count() == 0


def test_visibility_column_is_not_nullable(db_session, alice, scifi):
    # bypass schema validation to reach the column constraint
    updates = CustomListUpdate.model_construct(is_public=None)

    response = CustomListService.update_custom_list(db_session, alice.id, scifi.id, updates)

    assert response.error.code == "23502"
    assert unwrap_response(CustomListService.get_user_custom_lists(db_session, alice.id, viewer_id=alice.id))[0].is_public is True
