from educationelly.auth import jwt_handler
from educationelly.models.user import User

TEACHER_EMAIL = 'teacher@example.com'
TEACHER_PASSWORD = 'password123'


def test_signup_creates_user_with_normalized_email(client, db_session) -> None:
    response = client.post('/api/signup', json={'email': '  New.Teacher@Example.com ', 'password': 'secret123'})

    assert response.status_code == 200
    body = response.json()
    assert body['email'] == 'new.teacher@example.com'
    stored = db_session.query(User).filter(User.email == 'new.teacher@example.com').one()
    assert stored.id == body['id']
    assert stored.hashed_password != 'secret123'


def test_signup_rejects_duplicate_email(client, teacher) -> None:
    response = client.post('/api/signup', json={'email': TEACHER_EMAIL.upper(), 'password': 'secret123'})

    assert response.status_code == 400
    assert response.json() == {
        'error': 'Validation failed',
        'details': [{'field': 'email', 'message': 'Email is in use'}],
    }


def test_signup_validates_email_and_password(client) -> None:
    response = client.post('/api/signup', json={'email': 'not-an-email', 'password': '123'})

    assert response.status_code == 400
    details = {detail['field']: detail['message'] for detail in response.json()['details']}
    assert details == {
        'email': 'Must be a valid email address',
        'password': 'Password must be at least 6 characters',
    }


def test_signin_returns_token_for_valid_credentials(client, teacher) -> None:
    response = client.post('/api/signin', json={'email': TEACHER_EMAIL, 'password': TEACHER_PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body['user'] == {'id': teacher.id, 'email': TEACHER_EMAIL}
    assert jwt_handler.decode_access_token(body['token'])['sub'] == str(teacher.id)


def test_signin_with_wrong_password_never_returns_token(client, teacher) -> None:
    response = client.post('/api/signin', json={'email': TEACHER_EMAIL, 'password': 'wrong-password'})

    assert response.status_code == 401
    assert response.json() == {'error': 'Invalid email or password'}


def test_signin_with_unknown_email_is_unauthorized(client) -> None:
    response = client.post('/api/signin', json={'email': 'nobody@example.com', 'password': TEACHER_PASSWORD})

    assert response.status_code == 401
    assert 'token' not in response.json()


def test_whoami_returns_current_user(client, teacher) -> None:
    signin = client.post('/api/signin', json={'email': TEACHER_EMAIL, 'password': TEACHER_PASSWORD})
    token = signin.json()['token']

    response = client.get('/api/whoami', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 200
    assert response.json() == {'id': teacher.id, 'email': TEACHER_EMAIL}


def test_whoami_rejects_expired_token(client, teacher) -> None:
    token = jwt_handler.create_access_token(subject=str(teacher.id), expires_minutes=-1)

    response = client.get('/api/whoami', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 401
    assert response.json() == {'error': 'Token expired'}


def test_whoami_rejects_token_for_deleted_user(client) -> None:
    token = jwt_handler.create_access_token(subject='999')

    response = client.get('/api/whoami', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 401
    assert response.json() == {'error': 'User not found'}


def test_auth_check_reports_signed_in_email(client, auth_headers) -> None:
    response = client.get('/api/test-auth', headers=auth_headers)

    assert response.status_code == 200
    assert response.json()['message'] == 'Authentication working'
    assert response.json()['user'] == TEACHER_EMAIL


def test_fourth_signup_from_same_ip_is_rate_limited(client) -> None:
    statuses = [
        client.post('/api/signup', json={'email': f'teacher{n}@example.com', 'password': 'secret123'}).status_code
        for n in range(4)
    ]

    assert statuses == [200, 200, 200, 429]
    blocked = client.post('/api/signup', json={'email': 'late@example.com', 'password': 'secret123'})
    assert blocked.json() == {'error': 'Too many registration attempts, please try again later.'}


def test_signup_limit_does_not_block_other_routes(client, auth_headers) -> None:
    for n in range(4):
        client.post('/api/signup', json={'email': f'teacher{n}@example.com', 'password': 'secret123'})

    assert client.get('/api/whoami', headers=auth_headers).status_code == 200
