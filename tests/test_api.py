def test_root(client):
    assert client.get("/").json() == {"message": "Bookshelf API"}


def test_register_login_me(client):
    r = client.post("/auth/register", json={"name": "Alice", "email": "alice@example.com", "password": "pw"})
    assert r.status_code == 200
    user_id = r.json()["id"]

    dup = client.post("/auth/register", json={"email": "alice@example.com", "password": "other"})
    assert dup.status_code == 400

    bad = client.post("/auth/login", json={"email": "alice@example.com", "password": "wrong"})
    assert bad.status_code == 400

    r = client.post("/auth/login", json={"email": "alice@example.com", "password": "pw"})
    token = r.json()["access_token"]
    me = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json() == {"id": user_id, "name": "Alice", "email": "alice@example.com"}


def test_me_and_mutations_need_auth(client):
    assert client.get("/me").status_code == 401
    assert client.get("/me", headers={"Authorization": "Bearer garbage"}).status_code == 401
    r = client.put("/profiles/me", json={"name": "Nobody"})
    assert r.status_code == 401
    assert r.json() == {"detail": "Not authenticated"}


def test_admin_flow(client, make_user, login):
    make_user("boss@example.com", admin=True)
    make_user("reader@example.com")
    boss = login("boss@example.com")
    reader = login("reader@example.com")

    assert client.get("/admin/me").json() == {"is_admin": False}
    assert client.get("/admin/me", headers=reader).json() == {"is_admin": False}
    assert client.get("/admin/me", headers=boss).json() == {"is_admin": True}

    assert client.post("/admin/admins", json={"email": "boss@example.com"}, headers=reader).status_code == 403
    assert client.post("/admin/admins", json={"email": "ghost@example.com"}, headers=boss).status_code == 404
    assert client.post("/admin/admins", json={"email": "reader@example.com"}, headers=boss).json() == {"ok": True}
    assert client.post("/admin/admins", json={"email": "reader@example.com"}, headers=boss).status_code == 409
    assert client.get("/admin/me", headers=reader).json() == {"is_admin": True}


def test_book_lifecycle(client, make_user, login):
    make_user("boss@example.com", name="Boss", admin=True)
    make_user("alice@example.com", name="Alice")
    make_user("carol@example.com", name="Carol")
    boss = login("boss@example.com")
    alice = login("alice@example.com")
    carol = login("carol@example.com")

    dune = client.post("/books", json={"title": "Dune", "author": "Frank Herbert", "pages": 412}).json()["id"]
    emma = client.post("/books", json={"title": "Emma", "author": "Jane Austen"}, headers=alice).json()["id"]

    r = client.put(f"/books/{dune}/rating", json={"rating": 5, "finished_date": "2024-01-01"}, headers=alice)
    assert r.status_code == 200
    client.put(f"/books/{dune}/rating", json={"rating": 3}, headers=carol)

    assert client.get(f"/books/{dune}/average-rating").json() == {"average_rating": 4}
    assert client.get(f"/books/{emma}/average-rating").json() == {"average_rating": None}

    mine = client.get(f"/books/{dune}/rating", headers=alice).json()
    assert mine == {"rating": 5, "finished_date": "2024-01-01", "notes": None}
    assert client.get(f"/books/{dune}/rating").json() == {"rating": None, "finished_date": None, "notes": None}

    reviews = client.get(f"/books/{dune}/reviews").json()
    assert [r["profile"]["name"] for r in reviews] == ["Alice", "Carol"]

    listed = client.get("/books", params={"sort_by": "title", "sort_order": "desc"}).json()
    assert [b["title"] for b in listed] == ["Emma", "Dune"]
    assert listed[1] == {"id": dune, "title": "Dune", "author": "Frank Herbert", "pages": 412}
    assert client.get("/books", params={"sort_by": "pages"}).status_code == 422

    assert client.delete(f"/admin/books/{dune}", headers=alice).status_code == 403
    assert client.delete(f"/admin/books/{dune}", headers=boss).json() == {"deleted": True}
    assert client.get(f"/books/{dune}/reviews").json() == []
    assert [b["id"] for b in client.get("/books").json()] == [emma]

    assert client.delete(f"/books/{emma}").status_code == 401
    assert client.delete(f"/books/{emma}", headers=boss).json() == {"deleted": True}
    assert client.get("/books").json() == []


def test_profiles(client, make_user, login):
    user_id = make_user("alice@example.com", name="Alice")
    alice = login("alice@example.com")

    assert client.get(f"/profiles/{user_id}").json() is None
    r = client.get("/profiles/not-an-id")
    assert r.status_code == 200
    assert r.json() is None
    assert client.get("/books/not-an-id/reviews").json() == []
    assert client.get("/books/not-an-id/average-rating").json() == {"average_rating": None}

    r = client.put("/profiles/me", json={"name": "Alice", "bio": "Reads a lot", "favorite_genres": ["sci-fi"]},
                   headers=alice)
    profile_id = r.json()["id"]
    client.put("/profiles/me", json={"name": "Ally"}, headers=alice)

    profile = client.get(f"/profiles/{user_id}").json()
    assert profile == {"id": profile_id, "user_id": user_id, "name": "Ally",
                       "bio": "Reads a lot", "favorite_genres": ["sci-fi"]}
