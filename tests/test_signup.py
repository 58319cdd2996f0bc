# tests/test_signup.py
import pytest
from sqlalchemy.exc import SQLAlchemyError

from user_service.gateway import UserGateway
from user_service.models import Address, User
from user_service.utils import verify_password


def test_signup_creates_user_and_linked_address(client, session, signup_payload, count_rows):
    """
    Un registro válido deja exactamente un usuario y una dirección que lo referencia.
    """
    r = client.post("/signup", json=signup_payload)

    assert r.status_code == 201, f"Esperado 201 pero se obtuvo {r.status_code}: {r.text}"
    body = r.json()
    assert body["message"] == "Data Inserted Successfully"
    assert count_rows() == (1, 1)

    user = session.query(User).filter(User.id == body["id"]).one()
    address = session.query(Address).one()
    assert address.user_id == user.id
    assert user.username == signup_payload["username"]
    assert (address.city, address.country, address.street, address.pincode) == ("NY", "US", "Main", "10001")
    assert user.created_at is not None


def test_signup_stores_password_hash(client, session, signup_payload):
    r = client.post("/signup", json=signup_payload)
    assert r.status_code == 201

    user = session.query(User).one()
    assert user.password != signup_payload["password"]
    assert verify_password(signup_payload["password"], user.password)


def test_signup_without_pincode(client, session, signup_payload):
    signup_payload.pop("pincode")
    r = client.post("/signup", json=signup_payload)

    assert r.status_code == 201
    assert session.query(Address).one().pincode is None


def test_signup_scenario_then_joined_lookup(client):
    """
    Registro de ejemplo seguido de la consulta con JOIN sobre el id devuelto.
    """
    payload = {
        "username": "al",
        "email": "a@b.com",
        "password": "x",
        "city": "NY",
        "country": "US",
        "street": "Main",
        "pincode": "10001",
    }
    r = client.post("/signup", json=payload)
    assert r.status_code == 201

    r = client.get("/user/goodapproach", params={"id": r.json()["id"]})
    assert r.status_code == 200
    assert r.json()["userAndAddresses"]["city"] == "NY"


def test_signup_short_username_is_rejected(client, signup_payload, count_rows):
    signup_payload["username"] = "a"
    r = client.post("/signup", json=signup_payload)

    assert r.status_code == 401, f"Esperado 401 pero se obtuvo {r.status_code}"
    assert r.json() == {"message": "Invalid Entry", "error": "validation_failed"}
    assert count_rows() == (0, 0)


@pytest.mark.parametrize(
    "field, value",
    [
        ("username", "bad_name!"),
        ("username", "x" * 21),
        ("email", "not-an-email"),
        ("password", None),
        ("city", None),
        ("country", 42),
        ("street", None),
        ("pincode", 10001),
    ],
)
def test_signup_any_invalid_field_writes_nothing(client, signup_payload, count_rows, field, value):
    """
    Un solo campo inválido rechaza el registro completo sin escribir filas.
    """
    signup_payload[field] = value
    r = client.post("/signup", json=signup_payload)

    assert r.status_code == 401
    assert r.json()["message"] == "Invalid Entry"
    assert count_rows() == (0, 0)


def test_signup_malformed_body_is_rejected(client, count_rows):
    r = client.post("/signup", content=b"{not json", headers={"Content-Type": "application/json"})

    assert r.status_code == 401
    assert count_rows() == (0, 0)


@pytest.mark.parametrize("duplicated", ["username", "email"])
def test_signup_duplicate_leaves_store_unchanged(client, signup_payload, count_rows, duplicated):
    """
    Un usuario o email repetido revierte la transacción: no quedan filas huérfanas.
    """
    assert client.post("/signup", json=signup_payload).status_code == 201

    second = dict(signup_payload)
    if duplicated == "username":
        second["email"] = "other@mail.com"
    else:
        second["username"] = "other user"
    r = client.post("/signup", json=second)

    assert r.status_code == 500, f"Esperado 500 pero se obtuvo {r.status_code}"
    assert r.json() == {"message": "Error Inserting Data", "error": "conflict_duplicate"}
    assert count_rows() == (1, 1)


def test_signup_address_failure_rolls_back_user(client, signup_payload, count_rows, monkeypatch):
    """
    Si falla el segundo INSERT, el usuario ya insertado tampoco queda guardado.
    """
    def failing_insert_address(self, *args, **kwargs):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(UserGateway, "insert_address", failing_insert_address)
    r = client.post("/signup", json=signup_payload)

    assert r.status_code == 500
    body = r.json()
    assert body == {"message": "Error Inserting Data", "error": "persistence_unavailable"}
    assert "connection lost" not in r.text
    assert count_rows() == (0, 0)


def test_signup_skips_hashing_when_invalid(client, signup_payload, monkeypatch):
    calls = []
    monkeypatch.setattr("user_service.workflows.get_password_hash", lambda password: calls.append(password))

    signup_payload["email"] = "nope"
    r = client.post("/signup", json=signup_payload)

    assert r.status_code == 401
    assert calls == []


@pytest.mark.parametrize(
    "field, value",
    [
        ("email", "Alice <alice@mail.com>"),
        ("password", "ab\x00cd"),
    ],
)
def test_signup_rejects_values_the_store_cannot_take_as_is(client, signup_payload, count_rows, field, value):
    """
    Un email con nombre visible o una contraseña con NUL son entradas inválidas, no errores de persistencia.
    """
    signup_payload[field] = value
    r = client.post("/signup", json=signup_payload)

    assert r.status_code == 401, f"Esperado 401 pero se obtuvo {r.status_code}: {r.text}"
    assert r.json() == {"message": "Invalid Entry", "error": "validation_failed"}
    assert count_rows() == (0, 0)
