import pytest
from sqlalchemy.exc import SQLAlchemyError
from models.logs import AccessLog, SystemLog
from models.stores import Store
from models.user_profiles import UserProfile
from models.users import User, UserPhone
from core.roles import ROLE_ADMIN
from services.log_service import LogService
from services.session_service import SessionService
from services.token_service import TokenService
from tests.helpers import post_with_refresh_cookie, refresh_cookie_value, refresh_set_cookie


def registration(**overrides):
    data = {
        "email": "maria@lojadamaria.com.br",
        "senha": "secret1",
        "nome_usuario": "Maria Silva",
        "cpf_usuario": "123.456.789-09",
        "telefones": ["(11) 98765-4321"],
        "nome_loja": "Loja da Maria",
        "cnpj_cpf_loja": "12.345.678/0001-95",
    }
    data.update(overrides)
    return data


async def test_register_store_owner(client, session):
    """Registration creates user, store and owner profile and logs in."""

    response = await client.post("/auth/register", json=registration())

    assert response.status_code == 201

    data = response.json()
    user = data["user"]
    assert user["email"] == "maria@lojadamaria.com.br"
    assert user["nome"] == "Maria Silva"
    assert user["role"] == ROLE_ADMIN
    assert user["telefones"] == ["+5511987654321"]

    payload = TokenService.decode_access_token(data["accessToken"])
    assert payload["role"] == ROLE_ADMIN
    assert payload["loja_id"] == user["lojaId"]

    # Verify database state
    db_user = session.query(User).filter(User.email == "maria@lojadamaria.com.br").one()
    assert db_user.hashed_password != "secret1"
    assert db_user.is_active is True

    store = session.query(Store).one()
    assert store.id == user["lojaId"]
    assert store.name == "Loja da Maria"
    assert store.document == "12345678000195"
    assert store.admin_user_id == db_user.id

    profile = session.query(UserProfile).one()
    assert profile.user_id == db_user.id
    assert profile.document == "12345678909"
    assert profile.role == ROLE_ADMIN
    assert profile.job_title == "Proprietário"


async def test_register_logs_owner_in(client):
    """The refresh cookie from registration is a working session."""
    response = await client.post("/auth/register", json=registration())

    assert refresh_set_cookie(response) is not None
    raw = refresh_cookie_value(response)

    refreshed = await post_with_refresh_cookie(client, "/auth/refresh", raw)
    assert refreshed.status_code == 200


async def test_register_writes_audit_logs(client, session):
    await client.post("/auth/register", json=registration())

    system_log = session.query(SystemLog).one()
    assert system_log.action == "REGISTRO_LOJA"
    assert system_log.details == "Nova loja: Loja da Maria"
    assert system_log.user_id is not None

    access_log = session.query(AccessLog).one()
    assert access_log.success is True
    assert access_log.ip == "REGISTRO"
    assert access_log.user_agent == "SISTEMA"


async def test_register_without_store_document(client, session):
    response = await client.post("/auth/register", json=registration(cnpj_cpf_loja=None))

    assert response.status_code == 201
    assert session.query(Store).one().document is None


async def test_register_duplicate_email(client, session, store_owner):
    response = await client.post("/auth/register", json=registration(email="A@A.com"))

    assert response.status_code == 409
    assert response.json()["detail"] == "Email já cadastrado."
    assert session.query(Store).count() == 1


async def test_register_duplicate_store_document(client, session):
    first = await client.post("/auth/register", json=registration())
    assert first.status_code == 201

    response = await client.post(
        "/auth/register",
        json=registration(email="joao@example.com", cnpj_cpf_loja="12345678000195")
    )

    assert response.status_code == 409
    assert response.json()["detail"] == "CNPJ/CPF da loja já cadastrado."
    assert session.query(User).count() == 1


@pytest.mark.parametrize("overrides", [
    {"senha": "12345"},
    {"cpf_usuario": "123"},
    {"cnpj_cpf_loja": "123456789012"},
    {"nome_loja": "  "},
    {"telefones": ["123"]},
    {"telefones": ["11987654321", "11987654322", "11987654323"]},
])
async def test_register_invalid_input(client, session, overrides):
    """Malformed input is rejected before anything is written."""
    response = await client.post("/auth/register", json=registration(**overrides))

    assert response.status_code == 400
    assert response.json()["detail"]
    assert session.query(User).count() == 0
    assert session.query(Store).count() == 0
    assert session.query(UserPhone).count() == 0


async def test_register_weak_password_message(client):
    response = await client.post("/auth/register", json=registration(senha="123"))

    assert response.status_code == 400
    assert "Senha fraca" in response.json()["detail"]


async def test_register_survives_audit_log_failure(client, session, monkeypatch):
    """Audit logging is best-effort; its failure never fails registration."""
    def broken_persist(self, entry):
        raise SQLAlchemyError("log table unavailable")

    monkeypatch.setattr(LogService, "_persist", broken_persist)

    response = await client.post("/auth/register", json=registration())

    assert response.status_code == 201
    assert session.query(User).count() == 1
    assert session.query(UserProfile).count() == 1
    assert session.query(SystemLog).count() == 0


async def test_register_concurrent_duplicate_is_conflict(client, session, monkeypatch):
    """Two registrations racing past the uniqueness check: the loser gets 409, not 500."""
    first = await client.post("/auth/register", json=registration())
    assert first.status_code == 201

    monkeypatch.setattr(SessionService, "_ensure_unique", lambda self, data: None)

    response = await client.post("/auth/register", json=registration(cnpj_cpf_loja=None))

    assert response.status_code == 409
    assert response.json()["detail"] == "Email já cadastrado."
    assert session.query(User).count() == 1
