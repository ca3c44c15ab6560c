"""
Test cases for authentication functionality.
"""
import logging

import pytest

from conftest import TEST_PASSWORD


class TestRegister:
    """Test cases for user registration."""

    def test_register_creates_student(self, client):
        response = client.post('/api/auth/register', json={
            'full_name': 'New Student',
            'email': 'New@Example.com',
            'password': 'secret123',
        })
        assert response.status_code == 201
        user = response.get_json()['user']
        assert user['email'] == 'new@example.com'
        assert user['role'] == 'STUDENT'

        # Registration signs the user in
        assert client.get('/api/auth/me').status_code == 200

    def test_register_ignores_requested_role(self, client):
        response = client.post('/api/auth/register', json={
            'full_name': 'Sneaky',
            'email': 'sneaky@example.com',
            'password': 'secret123',
            'role': 'ADMIN',
        })
        assert response.get_json()['user']['role'] == 'STUDENT'

    def test_register_missing_fields(self, client):
        response = client.post('/api/auth/register', json={'email': 'a@example.com'})
        assert response.status_code == 400

    def test_register_invalid_email(self, client):
        response = client.post('/api/auth/register', json={
            'full_name': 'Bad Email', 'email': 'not-an-email', 'password': 'secret123',
        })
        assert response.status_code == 400
        assert response.get_json()['field'] == 'email'

    def test_register_short_password(self, client):
        response = client.post('/api/auth/register', json={
            'full_name': 'Short', 'email': 'short@example.com', 'password': '123',
        })
        assert response.status_code == 400
        assert response.get_json()['field'] == 'password'

    def test_register_duplicate_email(self, client, student_id):
        response = client.post('/api/auth/register', json={
            'full_name': 'Again', 'email': 'student@example.com', 'password': 'secret123',
        })
        assert response.status_code == 409


class TestLogin:
    """Test cases for login and logout."""

    def test_login_success(self, client, student_id):
        response = client.post('/api/auth/login', json={
            'email': 'student@example.com',
            'password': TEST_PASSWORD,
        })
        assert response.status_code == 200
        assert response.get_json()['user']['id'] == student_id

        me = client.get('/api/auth/me').get_json()['user']
        assert me['email'] == 'student@example.com'

    def test_login_wrong_password(self, client, student_id):
        response = client.post('/api/auth/login', json={
            'email': 'student@example.com',
            'password': 'wrong-password',
        })
        assert response.status_code == 401
        assert client.get('/api/auth/me').status_code == 401

    def test_login_unknown_email(self, client):
        response = client.post('/api/auth/login', json={
            'email': 'nobody@example.com',
            'password': TEST_PASSWORD,
        })
        assert response.status_code == 401

    def test_login_missing_fields(self, client):
        assert client.post('/api/auth/login', json={}).status_code == 400

    def test_login_is_rate_limited(self, app, client, student_id):
        app.config['LOGIN_RATE_LIMIT'] = 3
        payload = {'email': 'student@example.com', 'password': 'wrong-password'}

        for _ in range(3):
            assert client.post('/api/auth/login', json=payload).status_code == 401

        response = client.post('/api/auth/login', json=payload)
        assert response.status_code == 429
        assert response.get_json()['code'] == 'rate_limited'
        assert 'Retry-After' in response.headers

    def test_logout(self, client, login, student_id):
        login(student_id)
        assert client.post('/api/auth/logout').status_code == 200
        assert client.get('/api/auth/me').status_code == 401

    def test_me_requires_login(self, client):
        response = client.get('/api/auth/me')
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Authentication required'


class TestPasswordHashing:
    """Test cases for password utilities."""

    def test_hash_and_verify(self):
        from quizhub.auth.utils import hash_password, verify_password
        hashed = hash_password('correct horse')
        assert hashed != 'correct horse'
        assert verify_password('correct horse', hashed)
        assert not verify_password('wrong horse', hashed)

    def test_long_passwords_truncated_consistently(self):
        from quizhub.auth.utils import hash_password, verify_password
        long_password = 'a' * 100
        hashed = hash_password(long_password)
        assert verify_password('a' * 72 + 'different-tail', hashed)

    def test_validate_password_length(self):
        from quizhub.auth.utils import validate_password
        assert validate_password('12345') == 'Password must be at least 6 characters long'
        assert validate_password('123456') is None

    def test_hash_uses_configured_rounds(self):
        from passlib.hash import bcrypt
        from quizhub.auth.utils import hash_password
        assert bcrypt.from_string(hash_password('secret123')).rounds == 4

    def test_multibyte_password_cut_on_character_boundary(self):
        from quizhub.auth.utils import _bcrypt_input, verify_password, hash_password
        password = 'a' * 71 + 'é' + 'tail'
        assert _bcrypt_input(password) == 'a' * 71
        assert verify_password('a' * 71, hash_password(password))


class TestRegistrationCheck:
    """Test cases for the registration form check."""

    def test_accepts_complete_form(self):
        from quizhub.auth.utils import check_registration
        assert check_registration('Ada', 'ada@example.com', 'secret123') is None

    def test_reports_first_problem_field(self):
        from quizhub.auth.utils import check_registration
        assert check_registration('', 'ada@example.com', 'secret123').field == 'full_name'
        assert check_registration('Ada', '', 'secret123').field == 'email'
        assert check_registration('Ada', 'ada@', 'secret123').field == 'email'
        assert check_registration('Ada', 'ada@example.com', '').field == 'password'
        assert check_registration('Ada', 'ada@example.com', '123').field == 'password'

    def test_full_name_too_long(self):
        from quizhub.auth.utils import check_registration
        problem = check_registration('x' * 256, 'ada@example.com', 'secret123')
        assert problem.field == 'full_name'

    def test_normalize_email(self):
        from quizhub.auth.utils import normalize_email
        assert normalize_email('  Ada@Example.COM ') == 'ada@example.com'
        assert normalize_email(None) == ''
        assert normalize_email(42) == ''


class TestSecurityLogger:
    """Test cases for the security audit lines."""

    def test_role_change_line(self, app, caplog):
        from quizhub.security.security_logger import SecurityLogger
        with app.test_request_context('/api/admin/users/2/role', environ_base={'REMOTE_ADDR': '10.0.0.5'}):
            with caplog.at_level(logging.INFO, logger=app.logger.name):
                SecurityLogger.log_role_change(1, 2, 'ADMIN')
        line = caplog.records[-1].getMessage()
        assert line.startswith('SECURITY: role_changed ')
        assert 'admin_id=1 user_id=2 role=ADMIN ip=10.0.0.5' in line

    def test_failed_login_is_a_warning(self, app, client, student_id, caplog):
        with caplog.at_level(logging.INFO, logger=app.logger.name):
            client.post('/api/auth/login', json={'email': 'student@example.com', 'password': 'wrong-password'})
        records = [r for r in caplog.records if r.getMessage().startswith('SECURITY: login_failed')]
        assert len(records) == 1
        assert records[0].levelno == logging.WARNING
        assert 'email=student@example.com' in records[0].getMessage()

    def test_logs_outside_a_request(self, app, caplog):
        from quizhub.security.security_logger import SecurityLogger
        with app.app_context():
            with caplog.at_level(logging.INFO, logger=app.logger.name):
                SecurityLogger.log_attempt_limit(3, 9)
        assert 'user_id=3 quiz_id=9 ip=None' in caplog.records[-1].getMessage()


class TestBcryptRoundsSetting:
    """Test cases for the BCRYPT_ROUNDS setting."""

    def test_out_of_range_rounds_rejected(self, monkeypatch):
        from quizhub.config import Config
        monkeypatch.setenv('BCRYPT_ROUNDS', '3')
        with pytest.raises(ValueError, match='BCRYPT_ROUNDS'):
            Config().validate()
