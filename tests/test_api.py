"""
Testes de integração da API HTTP.

Fluxos completos via httpx + ASGITransport: autenticação, permissões por
role, formato dos erros de domínio e circulação de ponta a ponta.
"""

from datetime import timedelta
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient

from library_circulation.db import redis as redis_db
from library_circulation.models.enums import CopyStatus, UserRole

from conftest import START, TEST_PASSWORD, auth_headers, copy_status

API = "/api/v1"


# ==========================================
# Auth
# ==========================================

class TestAuth:
    """Cadastro, login e /me."""

    @pytest.mark.anyio
    async def test_signup_creates_student(self, client: AsyncClient):
        response = await client.post(
            f"{API}/auth/signup",
            json={"name": "Maria Souza", "email": "maria@example.com", "password": "Senha123!"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["role"] == "STUDENT"
        assert data["is_active"] is True
        assert "password_hash" not in data

    @pytest.mark.anyio
    async def test_signup_duplicate_email(self, client: AsyncClient):
        payload = {"name": "Maria Souza", "email": "maria@example.com", "password": "Senha123!"}
        await client.post(f"{API}/auth/signup", json=payload)

        response = await client.post(f"{API}/auth/signup", json=payload)

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.anyio
    async def test_signup_weak_password(self, client: AsyncClient):
        response = await client.post(
            f"{API}/auth/signup",
            json={"name": "Maria Souza", "email": "maria@example.com", "password": "fraca"},
        )

        assert response.status_code == 422

    @pytest.mark.anyio
    async def test_login_and_me(self, client: AsyncClient, make_user):
        user = await make_user(UserRole.LIBRARIAN)

        response = await client.post(
            f"{API}/auth/login",
            json={"email": user.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        token = response.json()["token"]["access_token"]
        me = await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["role"] == "LIBRARIAN"

    @pytest.mark.anyio
    async def test_login_wrong_password(self, client: AsyncClient, make_user):
        user = await make_user()

        response = await client.post(
            f"{API}/auth/login",
            json={"email": user.email, "password": "Errada123"},
        )

        assert response.status_code == 401

    @pytest.mark.anyio
    async def test_inactive_user_rejected(self, client: AsyncClient, make_user):
        user = await make_user(is_active=False)

        response = await client.get(f"{API}/auth/me", headers=auth_headers(user))

        assert response.status_code == 401

    @pytest.mark.anyio
    async def test_missing_token(self, client: AsyncClient):
        response = await client.get(f"{API}/loans/my")

        assert response.status_code in (401, 403)

    @pytest.mark.anyio
    async def test_invalid_token(self, client: AsyncClient):
        response = await client.get(
            f"{API}/loans/my", headers={"Authorization": "Bearer invalid-token"}
        )

        assert response.status_code == 401


# ==========================================
# Permissões
# ==========================================

class TestPermissions:
    """Controle de acesso por operação."""

    @pytest.mark.anyio
    async def test_student_cannot_return_loan(self, client: AsyncClient, make_user, make_copy):
        student = await make_user()
        copy = await make_copy()
        created = await client.post(
            f"{API}/loans", json={"copy_id": str(copy.id)}, headers=auth_headers(student)
        )

        response = await client.patch(
            f"{API}/loans/{created.json()['id']}/return", headers=auth_headers(student)
        )

        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "forbidden"
        assert "loan:return" in body["message"]

    @pytest.mark.anyio
    async def test_student_cannot_list_all_loans(self, client: AsyncClient, make_user):
        student = await make_user()

        response = await client.get(f"{API}/loans", headers=auth_headers(student))

        assert response.status_code == 403

    @pytest.mark.anyio
    async def test_librarian_cannot_run_system_jobs(self, client: AsyncClient, make_user):
        librarian = await make_user(UserRole.LIBRARIAN)

        response = await client.post(
            f"{API}/system/expire-reservations", headers=auth_headers(librarian)
        )

        assert response.status_code == 403

    @pytest.mark.anyio
    async def test_student_cannot_create_copy(self, client: AsyncClient, make_user, make_book):
        student = await make_user()
        book = await make_book()

        response = await client.post(
            f"{API}/copies",
            json={"code": "X-1", "book_id": str(book.id)},
            headers=auth_headers(student),
        )

        assert response.status_code == 403

    @pytest.mark.anyio
    async def test_admin_creates_librarian(self, client: AsyncClient, make_user):
        admin = await make_user(UserRole.ADMIN)

        response = await client.post(
            f"{API}/users",
            json={
                "name": "Bibliotecária",
                "email": "biblio@example.com",
                "password": "Senha123!",
                "role": "LIBRARIAN",
            },
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        assert response.json()["role"] == "LIBRARIAN"

    @pytest.mark.anyio
    async def test_reservation_visible_to_owner_and_staff_only(
        self, client: AsyncClient, make_user, make_copy
    ):
        owner = await make_user()
        other = await make_user()
        librarian = await make_user(UserRole.LIBRARIAN)
        copy = await make_copy()
        created = await client.post(
            f"{API}/reservations", json={"copy_id": str(copy.id)}, headers=auth_headers(owner)
        )
        url = f"{API}/reservations/{created.json()['id']}"

        assert (await client.get(url, headers=auth_headers(owner))).status_code == 200
        assert (await client.get(url, headers=auth_headers(librarian))).status_code == 200
        forbidden = await client.get(url, headers=auth_headers(other))
        assert forbidden.status_code == 403
        assert forbidden.json()["error"] == "forbidden"


# ==========================================
# Gestão de usuários
# ==========================================

class TestUserManagement:
    """Detalhe, alteração e desativação de usuários."""

    @pytest.mark.anyio
    async def test_get_user(self, client: AsyncClient, make_user):
        librarian = await make_user(UserRole.LIBRARIAN)
        student = await make_user()

        response = await client.get(
            f"{API}/users/{student.id}", headers=auth_headers(librarian)
        )
        missing = await client.get(
            f"{API}/users/{uuid4()}", headers=auth_headers(librarian)
        )

        assert response.status_code == 200
        assert response.json()["email"] == student.email
        assert missing.status_code == 404
        assert missing.json()["error"] == "not_found"

    @pytest.mark.anyio
    async def test_student_cannot_read_user(self, client: AsyncClient, make_user):
        student = await make_user()

        response = await client.get(f"{API}/users/{student.id}", headers=auth_headers(student))

        assert response.status_code == 403

    @pytest.mark.anyio
    async def test_admin_updates_user(self, client: AsyncClient, make_user):
        admin = await make_user(UserRole.ADMIN)
        student = await make_user()

        response = await client.patch(
            f"{API}/users/{student.id}",
            json={"role": "LIBRARIAN", "password": "NovaSenha9"},
            headers=auth_headers(admin),
        )
        login = await client.post(
            f"{API}/auth/login", json={"email": student.email, "password": "NovaSenha9"}
        )

        assert response.status_code == 200
        assert response.json()["role"] == "LIBRARIAN"
        assert login.status_code == 200

    @pytest.mark.anyio
    async def test_librarian_cannot_update_user(self, client: AsyncClient, make_user):
        librarian = await make_user(UserRole.LIBRARIAN)
        student = await make_user()

        response = await client.patch(
            f"{API}/users/{student.id}",
            json={"role": "ADMIN"},
            headers=auth_headers(librarian),
        )

        assert response.status_code == 403
        assert "user:update" in response.json()["message"]

    @pytest.mark.anyio
    async def test_deactivated_user_cannot_circulate(
        self, client: AsyncClient, make_user, make_copy
    ):
        """Conta desativada perde o token e o balcão não empresta para ela."""
        admin = await make_user(UserRole.ADMIN)
        librarian = await make_user(UserRole.LIBRARIAN)
        student = await make_user()
        copy = await make_copy()

        deleted = await client.delete(f"{API}/users/{student.id}", headers=auth_headers(admin))
        me = await client.get(f"{API}/auth/me", headers=auth_headers(student))
        loan = await client.post(
            f"{API}/loans/for-user",
            json={"copy_id": str(copy.id), "user_id": str(student.id)},
            headers=auth_headers(librarian),
        )

        assert deleted.status_code == 204
        assert me.status_code == 401
        assert loan.status_code == 400
        assert loan.json() == {
            "error": "invalid_state",
            "message": "User account is inactive",
        }

    @pytest.mark.anyio
    async def test_admin_cannot_deactivate_self(self, client: AsyncClient, make_user):
        admin = await make_user(UserRole.ADMIN)

        response = await client.delete(f"{API}/users/{admin.id}", headers=auth_headers(admin))

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_state"


# ==========================================
# Circulação
# ==========================================

class TestCirculationFlow:
    """Fluxos de ponta a ponta."""

    @pytest.mark.anyio
    async def test_catalog_to_return(self, client: AsyncClient, test_db, clock, make_user):
        """Cadastro do livro e exemplar, empréstimo, atraso e devolução com multa."""
        librarian = await make_user(UserRole.LIBRARIAN)
        student = await make_user()
        staff = auth_headers(librarian)

        book = await client.post(
            f"{API}/books",
            json={"isbn": "9788535914849", "title": "Dom Casmurro", "author": "Machado de Assis"},
            headers=staff,
        )
        assert book.status_code == 201
        copy = await client.post(
            f"{API}/copies",
            json={"code": "DC-0001", "book_id": book.json()["id"]},
            headers=staff,
        )
        assert copy.status_code == 201
        copy_id = copy.json()["id"]

        loan = await client.post(
            f"{API}/loans", json={"copy_id": copy_id}, headers=auth_headers(student)
        )
        assert loan.status_code == 201
        assert loan.json()["status"] == "ACTIVE"
        assert loan.json()["book_title"] == "Dom Casmurro"

        availability = await client.get(
            f"{API}/copies/{copy_id}/availability", headers=auth_headers(student)
        )
        assert availability.json()["is_borrowed"] is True

        clock.advance(days=16)
        returned = await client.patch(f"{API}/loans/{loan.json()['id']}/return", headers=staff)

        assert returned.status_code == 200
        body = returned.json()
        assert body["loan"]["status"] == "RETURNED"
        assert float(body["fine_applied"]) == 2000.0
        assert body["message"].startswith("Copy returned late")
        assert await copy_status(test_db, UUID(copy_id)) == CopyStatus.AVAILABLE

    @pytest.mark.anyio
    async def test_second_loan_on_same_copy_rejected(self, client: AsyncClient, make_user, make_copy):
        first = await make_user()
        second = await make_user()
        copy = await make_copy()

        await client.post(f"{API}/loans", json={"copy_id": str(copy.id)}, headers=auth_headers(first))
        response = await client.post(
            f"{API}/loans", json={"copy_id": str(copy.id)}, headers=auth_headers(second)
        )

        assert response.status_code == 400
        assert response.json() == {
            "error": "invalid_state",
            "message": "Copy is not available for loan. Current status: BORROWED",
        }

    @pytest.mark.anyio
    async def test_reservation_handoff_via_staff(self, client: AsyncClient, make_user, make_copy):
        """Reserva do aluno vira empréstimo registrado pela equipe."""
        student = await make_user()
        librarian = await make_user(UserRole.LIBRARIAN)
        copy = await make_copy()

        reservation = await client.post(
            f"{API}/reservations", json={"copy_id": str(copy.id)}, headers=auth_headers(student)
        )
        assert reservation.status_code == 201
        assert reservation.json()["status"] == "PENDING"

        loan = await client.post(
            f"{API}/loans/for-user",
            json={"copy_id": str(copy.id), "user_id": str(student.id)},
            headers=auth_headers(librarian),
        )
        assert loan.status_code == 201

        mine = await client.get(f"{API}/reservations/my", headers=auth_headers(student))
        assert [r["status"] for r in mine.json()] == ["FULFILLED"]

    @pytest.mark.anyio
    async def test_reservation_expiry_via_system_endpoint(
        self, client: AsyncClient, clock, make_user, make_copy
    ):
        admin = await make_user(UserRole.ADMIN)
        student = await make_user()
        copy = await make_copy()
        await client.post(
            f"{API}/reservations",
            json={
                "copy_id": str(copy.id),
                "expiration_date": (START + timedelta(hours=2)).isoformat(),
            },
            headers=auth_headers(student),
        )

        clock.advance(hours=3)
        response = await client.post(
            f"{API}/system/expire-reservations", headers=auth_headers(admin)
        )

        assert response.status_code == 200
        assert response.json()["expired_count"] == 1
        availability = await client.get(
            f"{API}/copies/{copy.id}/availability", headers=auth_headers(student)
        )
        assert availability.json()["status"] == "AVAILABLE"

    @pytest.mark.anyio
    async def test_reservation_in_past_rejected(self, client: AsyncClient, make_user, make_copy):
        student = await make_user()
        copy = await make_copy()

        response = await client.post(
            f"{API}/reservations",
            json={
                "copy_id": str(copy.id),
                "expiration_date": (START - timedelta(hours=1)).isoformat(),
            },
            headers=auth_headers(student),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"

    @pytest.mark.anyio
    async def test_copy_deletion_guard(self, client: AsyncClient, make_user, make_copy):
        """Exemplar emprestado não pode ser removido; depois da devolução recebe soft-delete."""
        librarian = await make_user(UserRole.LIBRARIAN)
        student = await make_user()
        copy = await make_copy()
        staff = auth_headers(librarian)
        loan = await client.post(
            f"{API}/loans", json={"copy_id": str(copy.id)}, headers=auth_headers(student)
        )

        blocked = await client.delete(f"{API}/copies/{copy.id}", headers=staff)
        assert blocked.status_code == 400
        assert blocked.json()["message"] == "Cannot delete copy with an active loan"

        await client.patch(f"{API}/loans/{loan.json()['id']}/return", headers=staff)
        deleted = await client.delete(f"{API}/copies/{copy.id}", headers=staff)
        assert deleted.status_code == 204

        gone = await client.get(f"{API}/copies/{copy.id}", headers=staff)
        assert gone.status_code == 404
        assert gone.json()["error"] == "not_found"
        history = await client.get(f"{API}/loans/{loan.json()['id']}", headers=staff)
        assert history.status_code == 200
        assert history.json()["copy_code"] == copy.code

    @pytest.mark.anyio
    async def test_manual_status_change(self, client: AsyncClient, make_user, make_copy):
        librarian = await make_user(UserRole.LIBRARIAN)
        copy = await make_copy()
        url = f"{API}/copies/{copy.id}/status"

        maintenance = await client.patch(
            url, json={"status": "MAINTENANCE"}, headers=auth_headers(librarian)
        )
        borrowed = await client.patch(
            url, json={"status": "BORROWED"}, headers=auth_headers(librarian)
        )
        deleted = await client.patch(
            url, json={"status": "DELETED"}, headers=auth_headers(librarian)
        )

        assert maintenance.status_code == 200
        assert maintenance.json()["status"] == "MAINTENANCE"
        assert borrowed.status_code == 400
        assert borrowed.json()["error"] == "invalid_state"
        assert deleted.status_code == 400
        assert deleted.json()["error"] == "invalid_input"

    @pytest.mark.anyio
    async def test_list_loans_filtered_by_status(self, client: AsyncClient, make_user, make_copy):
        librarian = await make_user(UserRole.LIBRARIAN)
        student = await make_user()
        first = await make_copy()
        second = await make_copy()
        staff = auth_headers(librarian)
        returned = await client.post(
            f"{API}/loans", json={"copy_id": str(first.id)}, headers=auth_headers(student)
        )
        await client.post(f"{API}/loans", json={"copy_id": str(second.id)}, headers=auth_headers(student))
        await client.patch(f"{API}/loans/{returned.json()['id']}/return", headers=staff)

        response = await client.get(f"{API}/loans", params={"status": "RETURNED"}, headers=staff)

        assert response.status_code == 200
        page = response.json()
        assert page["total"] == 1
        assert page["items"][0]["id"] == returned.json()["id"]

    @pytest.mark.anyio
    async def test_unknown_copy_returns_404(self, client: AsyncClient, make_user):
        student = await make_user()

        response = await client.post(
            f"{API}/loans",
            json={"copy_id": "00000000-0000-0000-0000-000000000000"},
            headers=auth_headers(student),
        )

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.anyio
    async def test_rate_limit_on_loan_creation(self, client: AsyncClient, make_user, make_copy, monkeypatch):
        student = await make_user()
        copy = await make_copy()
        mock_redis = AsyncMock()
        mock_redis.incr.return_value = 31
        mock_redis.ttl.return_value = 40
        monkeypatch.setattr(redis_db, "redis_client", mock_redis)

        response = await client.post(
            f"{API}/loans", json={"copy_id": str(copy.id)}, headers=auth_headers(student)
        )

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "40"
        mock_redis.incr.assert_called_once_with(f"rate_limit:circulation:user:{student.id}")
