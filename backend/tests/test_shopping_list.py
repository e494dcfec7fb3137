import pytest

URL = "/api/shoppingList"


def create(client, user_id="u1", items=None):
    items = items if items is not None else [{"name": " Eggs ", "quantity": 12}, {"name": "Milk"}]
    return client.post(URL, json={"userId": user_id, "items": items})


def items_of(client, user_id="u1"):
    return client.get(URL, params={"userId": user_id}).json()["data"]["items"]


def test_create_and_fetch(client):
    response = create(client)
    assert response.status_code == 201
    assert response.json()["listId"]

    assert items_of(client) == [
        {"name": "eggs", "quantity": 12, "purchased": False},
        {"name": "milk", "quantity": 1, "purchased": False},
    ]


def test_second_create_conflicts(client):
    create(client)
    response = create(client, items=[{"name": "bread"}])
    assert response.status_code == 409
    assert items_of(client)[0]["name"] == "eggs"


@pytest.mark.parametrize("payload", [
    {"items": [{"name": "eggs"}]},
    {"userId": "u1", "items": []},
    {"userId": "u1", "items": [{"quantity": 2}]},
    {"userId": "u1", "items": [{"name": "   "}]},
    {"userId": "u1"},
])
def test_create_validation(client, payload):
    assert client.post(URL, json=payload).status_code == 400


def test_get_errors(client):
    assert client.get(URL).status_code == 400
    assert client.get(URL, params={"userId": "nobody"}).status_code == 404


def test_append_never_duplicates(client):
    create(client)
    response = client.put(URL, json={
        "userId": "u1",
        "append": True,
        "items": [{"name": "MILK", "quantity": 3}, {"name": "flour"}, {"name": "Flour "}],
    })
    assert response.status_code == 200

    items = items_of(client)
    assert [item["name"] for item in items] == ["eggs", "milk", "flour"]
    # Existing entry wins over the appended duplicate
    assert items[1]["quantity"] == 1


def test_replace(client):
    create(client)
    response = client.put(URL, json={"userId": "u1", "items": [{"name": "Butter", "purchased": True}]})
    assert response.status_code == 200
    assert items_of(client) == [{"name": "butter", "quantity": 1, "purchased": True}]


def test_mark_purchased(client):
    create(client)
    response = client.put(URL, json={
        "userId": "u1",
        "markPurchased": True,
        "items": [{"name": "Eggs", "purchased": True}, {"name": "caviar", "purchased": True}],
    })
    assert response.status_code == 200
    assert [(i["name"], i["purchased"]) for i in items_of(client)] == [("eggs", True), ("milk", False)]


def test_mark_purchased_with_no_matching_names(client):
    create(client)
    response = client.put(URL, json={
        "userId": "u1",
        "markPurchased": True,
        "items": [{"name": "caviar", "purchased": True}],
    })
    assert response.status_code == 404


def test_update_missing_list(client):
    response = client.put(URL, json={"userId": "ghost", "items": [{"name": "eggs"}]})
    assert response.status_code == 404


def test_remove_items(client):
    create(client)
    response = client.request("DELETE", URL, json={"userId": "u1", "items": [{"name": "EGGS"}]})
    assert response.status_code == 200
    assert [item["name"] for item in items_of(client)] == ["milk"]

    response = client.request("DELETE", URL, json={"userId": "u1", "items": [{"name": "eggs"}]})
    assert response.status_code == 404
