import pytest


@pytest.fixture
def catalogue(make_recipe):
    return {
        "soup": make_recipe(
            title="Tomato Soup", description="Warm and simple", category="Starter",
            tags=["vegan", "quick"], ingredients={"tomato": "4", "salt": "1 tsp"},
        ),
        "curry": make_recipe(
            title="Chickpea Curry", description="Spicy soup-like stew", category="Main",
            tags=["vegan"], ingredients={"chickpeas": "1 can"},
        ),
        "steak": make_recipe(
            title="Steak Frites", description="Classic bistro dinner", category="Main",
            tags=["quick", "meat"], ingredients={"steak": "300 g", "salt": "pinch"},
        ),
    }


def test_categories(client, catalogue):
    assert client.get("/api/categories").json() == {
        "success": True,
        "categories": ["Main", "Starter"],
        "total": 2,
    }


def test_tag_list(client, catalogue):
    assert client.get("/api/Tags").json() == {"success": True, "tags": ["meat", "quick", "vegan"]}


def test_tag_filter_any_and_all(client, catalogue):
    any_match = client.get("/api/Tags", params={"tags": "vegan,quick"}).json()
    assert {r["id"] for r in any_match["recipes"]} == set(catalogue.values())
    assert any_match["total"] == 3

    all_match = client.get("/api/Tags", params={"tags": "vegan,quick", "matchAll": "true"}).json()
    assert [r["id"] for r in all_match["recipes"]] == [catalogue["soup"]]


def test_tag_filter_pagination(client, catalogue):
    body = client.get("/api/Tags", params={"tags": "vegan,quick", "limit": 2, "page": 2}).json()
    assert body["total"] == 3
    # Newest first, so the oldest recipe is alone on page two
    assert [r["id"] for r in body["recipes"]] == [catalogue["soup"]]


def test_ingredients(client, catalogue):
    body = client.get("/api/Ingredients").json()
    assert body["ingredients"] == ["chickpeas", "salt", "steak", "tomato"]


def test_ingredients_empty(client):
    response = client.get("/api/Ingredients")
    assert response.status_code == 404
    assert response.json()["error"] == "No ingredients found"


def test_search_whole_words(client, catalogue):
    body = client.get("/api/search", params={"searchTerm": "soup"}).json()
    # "soup-like" counts as the word "soup"
    assert {r["id"] for r in body["results"]} == {catalogue["soup"], catalogue["curry"]}
    assert body["total"] == 2


def test_search_matches_category_and_any_word(client, catalogue):
    body = client.get("/api/search", params={"q": "starter bistro"}).json()
    assert {r["id"] for r in body["results"]} == {catalogue["soup"], catalogue["steak"]}


def test_search_falls_back_to_title_substring(client, catalogue):
    body = client.get("/api/search", params={"searchTerm": "chick"}).json()
    assert [r["id"] for r in body["results"]] == [catalogue["curry"]]


def test_search_no_results(client, catalogue):
    assert client.get("/api/search", params={"searchTerm": "sushi"}).json()["results"] == []


def test_search_requires_term(client):
    assert client.get("/api/search").status_code == 400
    assert client.get("/api/search", params={"searchTerm": "  "}).status_code == 400
