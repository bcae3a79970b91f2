"""Integration tests for API endpoints.

These tests verify API endpoints work correctly end-to-end, with the blob
store, notifier and token issuer replaced by in-process fakes.
"""

from datetime import timedelta

from profilehub.auth.jwt import TokenIssuer


class TestMetaEndpoints:
    def test_health(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_index_serves_ui(self, test_client):
        response = test_client.get("/")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "register-form" in response.text


class TestRegisterEndpoint:
    """Test POST /auth/register."""

    def test_register_success(self, register_user, registration_fields, notifier):
        response = register_user(registration_fields)

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "User registered successfully. Welcome email sent."
        assert data["token"]
        user = data["user"]
        assert user["firstName"] == "Ada"
        assert user["lastName"] == "Lovelace"
        assert user["email"] == "ada@lovelace.io"
        assert user["gender"] == "female"
        assert user["hobbies"] == ["Mathematics", "Poetry"]
        assert user["isEmailVerified"] is False
        assert user["photo"].startswith("https://test-bucket.s3.amazonaws.com/user-photos/")
        assert "password" not in user
        assert "passwordHash" not in user
        assert notifier.sent == [("ada@lovelace.io", "Ada")]

    def test_register_accepts_bracketed_hobbies(self, register_user, registration_fields):
        registration_fields["hobbies[]"] = registration_fields.pop("hobbies")

        response = register_user(registration_fields)

        assert response.status_code == 201
        assert response.json()["user"]["hobbies"] == ["Mathematics", "Poetry"]

    def test_register_with_failing_mail_still_created(self, register_user, registration_fields, notifier):
        notifier.fail = True

        response = register_user(registration_fields)

        assert response.status_code == 201
        assert response.json()["message"] == "User registered successfully. Welcome email could not be sent."

    def test_register_missing_photo(self, test_client, registration_fields, blob_store):
        response = test_client.post("/auth/register", data=registration_fields)

        assert response.status_code == 400
        data = response.json()
        assert data["errors"] == [{"field": "photo", "message": "Photo is required"}]
        assert blob_store.upload_calls == 0

    def test_register_non_image_photo(self, register_user, registration_fields):
        response = register_user(registration_fields, filename="notes.txt", content_type="text/plain")

        assert response.status_code == 400
        assert response.json()["errors"] == [{"field": "photo", "message": "Only image files are allowed"}]

    def test_register_validation_errors(self, register_user, registration_fields):
        del registration_fields["firstName"]
        registration_fields["password"] = "short"

        response = register_user(registration_fields)

        assert response.status_code == 400
        data = response.json()
        assert data["message"]
        errors = {e["field"]: e["message"] for e in data["errors"]}
        assert errors["firstName"] == "First name is required"
        assert errors["password"] == "Password must be at least 6 characters"

    def test_register_duplicate_email(self, register_user, registration_fields, blob_store):
        assert register_user(registration_fields).status_code == 201
        registration_fields["email"] = "ADA@LOVELACE.IO"

        response = register_user(registration_fields)

        assert response.status_code == 400
        assert response.json()["message"] == "User already exists"
        assert blob_store.upload_calls == 1

    def test_register_lost_email_race(self, register_user, registration_fields, monkeypatch):
        from profilehub.database.user_repository import UserRepository

        assert register_user(registration_fields).status_code == 201
        monkeypatch.setattr(UserRepository, "get_by_email", lambda self, email: None)

        response = register_user(registration_fields)

        assert response.status_code == 500
        assert response.json() == {"message": "Error registering user"}

    def test_register_upload_failure(self, register_user, registration_fields, blob_store):
        blob_store.fail_upload = True

        response = register_user(registration_fields)

        assert response.status_code == 500
        assert response.json()["message"] == "Error uploading photo to cloud storage"


class TestLoginEndpoint:
    """Test POST /auth/login."""

    def test_login_success(self, test_client, registered):
        response = test_client.post("/auth/login", json={"email": "ADA@lovelace.io", "password": "analytical"})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Login successful"
        assert data["token"]
        assert data["user"]["id"] == registered["user"]["id"]
        assert "password" not in data["user"]

    def test_wrong_password_and_unknown_email_are_indistinguishable(self, test_client, registered):
        wrong_password = test_client.post("/auth/login", json={"email": "ada@lovelace.io", "password": "wrong-one"})
        unknown_email = test_client.post("/auth/login", json={"email": "nobody@lovelace.io", "password": "analytical"})

        assert wrong_password.status_code == 401
        assert unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json() == {"message": "Invalid credentials"}

    def test_login_invalid_email(self, test_client):
        response = test_client.post("/auth/login", json={"email": "not-an-email", "password": "x"})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "email"

    def test_login_missing_password(self, test_client):
        response = test_client.post("/auth/login", json={"email": "ada@lovelace.io"})
        assert response.status_code == 400


class TestAuthenticationRequired:
    def test_no_token(self, test_client):
        response = test_client.get("/users")

        assert response.status_code == 401
        assert response.json() == {"message": "Not authenticated"}
        assert response.headers["www-authenticate"] == "Bearer"

    def test_garbage_token(self, test_client):
        response = test_client.get("/users", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid or expired token"}

    def test_expired_token(self, test_client, registered):
        expired = TokenIssuer(secret_key="test-secret", expiration=timedelta(seconds=-10))
        token = expired.issue(registered["user"]["id"])

        response = test_client.get("/users/profile/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_token_signed_with_other_secret(self, test_client, registered):
        forged = TokenIssuer(secret_key="someone-else").issue(registered["user"]["id"])

        response = test_client.get("/users", headers={"Authorization": f"Bearer {forged}"})

        assert response.status_code == 401

    def test_every_user_route_requires_token(self, test_client, registered):
        user_id = registered["user"]["id"]
        assert test_client.get("/users/profile/me").status_code == 401
        assert test_client.get(f"/users/{user_id}").status_code == 401
        assert test_client.put(f"/users/{user_id}", data={"firstName": "X"}).status_code == 401
        assert test_client.delete(f"/users/{user_id}").status_code == 401


class TestUserEndpoints:
    """Test the authenticated /users endpoints."""

    def test_list_users(self, test_client, auth_headers, register_user, registration_fields):
        registration_fields.update({"email": "charles@babbage.org", "firstName": "Charles"})
        assert register_user(registration_fields).status_code == 201

        response = test_client.get("/users", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert {u["email"] for u in data["users"]} == {"ada@lovelace.io", "charles@babbage.org"}
        assert all(u["photo"].startswith("https://") for u in data["users"])
        assert all("password" not in u for u in data["users"])

    def test_get_my_profile(self, test_client, auth_headers, registered):
        response = test_client.get("/users/profile/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["user"]["id"] == registered["user"]["id"]

    def test_get_user(self, test_client, auth_headers, registered):
        response = test_client.get(f"/users/{registered['user']['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "ada@lovelace.io"

    def test_get_user_not_found(self, test_client, auth_headers):
        response = test_client.get("/users/does-not-exist", headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"message": "User not found"}

    def test_update_user_fields(self, test_client, auth_headers, registered, user_repository):
        user_id = registered["user"]["id"]
        before = user_repository.get(user_id)

        response = test_client.put(
            f"/users/{user_id}",
            data={"firstName": "Augusta", "hobbies": ["Engines"]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["firstName"] == "Augusta"
        assert user["lastName"] == "Lovelace"
        assert user["hobbies"] == ["Engines"]
        after = user_repository.get(user_id)
        assert after.password_hash == before.password_hash
        assert after.photo == before.photo

    def test_update_user_photo(self, test_client, auth_headers, registered, user_repository, blob_store):
        user_id = registered["user"]["id"]
        old_locator = user_repository.get(user_id).photo

        response = test_client.put(
            f"/users/{user_id}",
            files={"photo": ("new.jpg", b"\xff\xd8\xff\xe0fake-jpeg", "image/jpeg")},
            headers=auth_headers,
        )

        assert response.status_code == 200
        new_locator = user_repository.get(user_id).photo
        assert new_locator != old_locator
        assert list(blob_store.objects) == [new_locator]

    def test_update_user_invalid_field(self, test_client, auth_headers, registered):
        response = test_client.put(
            f"/users/{registered['user']['id']}",
            data={"gender": "robot"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["errors"] == [{"field": "gender", "message": "Invalid gender"}]

    def test_update_password_then_login(self, test_client, auth_headers, registered):
        response = test_client.put(
            f"/users/{registered['user']['id']}",
            data={"password": "difference-engine"},
            headers=auth_headers,
        )
        assert response.status_code == 200

        old = test_client.post("/auth/login", json={"email": "ada@lovelace.io", "password": "analytical"})
        new = test_client.post("/auth/login", json={"email": "ada@lovelace.io", "password": "difference-engine"})
        assert old.status_code == 401
        assert new.status_code == 200

    def test_update_password_shaped_like_hash(self, test_client, auth_headers, registered, user_repository):
        from profilehub.auth.passwords import hash_password

        submitted = hash_password("something-else")
        response = test_client.put(
            f"/users/{registered['user']['id']}",
            data={"password": submitted},
            headers=auth_headers,
        )
        assert response.status_code == 200

        assert user_repository.get(registered["user"]["id"]).password_hash != submitted
        login = test_client.post("/auth/login", json={"email": "ada@lovelace.io", "password": submitted})
        assert login.status_code == 200

    def test_update_missing_user(self, test_client, auth_headers):
        response = test_client.put("/users/does-not-exist", data={"firstName": "Ghost"}, headers=auth_headers)
        assert response.status_code == 404

    def test_delete_user(self, test_client, auth_headers, registered, blob_store):
        user_id = registered["user"]["id"]

        response = test_client.delete(f"/users/{user_id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "User deleted successfully", "userId": user_id}
        assert blob_store.objects == {}
        assert test_client.get(f"/users/{user_id}", headers=auth_headers).status_code == 404

    def test_delete_user_when_photo_delete_fails(self, test_client, auth_headers, registered, blob_store):
        blob_store.fail_delete = True
        user_id = registered["user"]["id"]

        response = test_client.delete(f"/users/{user_id}", headers=auth_headers)

        assert response.status_code == 200
        assert test_client.get(f"/users/{user_id}", headers=auth_headers).status_code == 404

    def test_delete_missing_user(self, test_client, auth_headers):
        response = test_client.delete("/users/does-not-exist", headers=auth_headers)
        assert response.status_code == 404
