import pytest

from recipe_api.models.favourite import Favourite

URL = "/api/favourites"


def test_requires_authentication(client, make_recipe):
    recipe_id = make_recipe()
    for response in (
        client.get(URL),
        client.post(URL, json={"recipeId": recipe_id}),
        client.request("DELETE", URL, json={"recipeId": recipe_id}),
        client.get(URL, headers={"Authorization": "Bearer garbage"}),
    ):
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}


def test_add_twice_keeps_one_record(client, db, auth_headers, make_recipe):
    recipe_id = make_recipe()

    first = client.post(URL, json={"recipeId": recipe_id}, headers=auth_headers)
    second = client.post(URL, json={"recipeId": recipe_id}, headers=auth_headers)

    assert first.status_code == 200
    assert first.json()["message"] == "Recipe added to favourites"
    assert second.status_code == 200
    assert second.json() == {"success": True, "message": "Recipe already in favourites"}
    assert db.query(Favourite).filter(Favourite.recipe_id == recipe_id).count() == 1


def test_list_and_count(client, auth_headers, make_recipe):
    older = make_recipe()
    newer = make_recipe()
    client.post(URL, json={"recipeId": older}, headers=auth_headers)
    client.post(URL, json={"recipeId": newer}, headers=auth_headers)

    favourites = client.get(URL, headers=auth_headers).json()["favourites"]
    assert [f["recipeId"] for f in favourites] == [newer, older]
    assert favourites[0]["userEmail"] == "cook@example.com"

    assert client.get(URL, params={"action": "count"}, headers=auth_headers).json() == {
        "success": True,
        "count": 2,
    }


def test_favourites_are_per_user(client, signup_and_login, make_recipe):
    recipe_id = make_recipe()
    alice = signup_and_login("alice@example.com").cookies["token"]
    bob = signup_and_login("bob@example.com").cookies["token"]

    client.post(URL, json={"recipeId": recipe_id}, headers={"Authorization": f"Bearer {alice}"})

    count = client.get(URL, params={"action": "count"}, headers={"Authorization": f"Bearer {bob}"})
    assert count.json()["count"] == 0


def test_cookie_session_is_accepted(client, signup_and_login, make_recipe):
    recipe_id = make_recipe()
    signup_and_login()
    assert client.post(URL, json={"recipeId": recipe_id}).status_code == 200


def test_delete(client, auth_headers, make_recipe):
    recipe_id = make_recipe()
    client.post(URL, json={"recipeId": recipe_id}, headers=auth_headers)

    response = client.request("DELETE", URL, json={"recipeId": recipe_id}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Recipe removed from favourites"

    response = client.request("DELETE", URL, json={"recipeId": recipe_id}, headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Favourite not found"


@pytest.mark.parametrize("method", ["POST", "DELETE"])
def test_recipe_id_required(client, auth_headers, method):
    response = client.request(method, URL, json={}, headers=auth_headers)
    assert response.status_code == 400


def test_unknown_recipe(client, auth_headers):
    response = client.post(URL, json={"recipeId": "missing"}, headers=auth_headers)
    assert response.status_code == 404
