from educationelly.core import config
from educationelly.core.errors import UpstreamError

CONVERSATION = [
    {'role': 'user', 'content': 'How do I say hello in Spanish?'},
    {'role': 'assistant', 'content': 'Hola!'},
    {'role': 'user', 'content': 'And goodbye?'},
]


def test_chat_relays_gateway_reply_with_metadata(client, auth_headers, ai_gateway) -> None:
    response = client.post(
        '/api/ai/chat',
        json={'messages': CONVERSATION, 'context': {'studentId': 12345}},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json() == {'response': 'Hola! How can I help?', 'model': 'llama3', 'backend': 'ollama'}
    name, messages, context = ai_gateway.calls[0]
    assert name == 'chat'
    assert messages == CONVERSATION
    assert context == {'app': 'educationelly', 'studentId': 12345}


def test_chat_requires_authentication(client, ai_gateway) -> None:
    response = client.post('/api/ai/chat', json={'messages': CONVERSATION})

    assert response.status_code == 401
    assert ai_gateway.calls == []


def test_chat_rejects_empty_conversation(client, auth_headers, ai_gateway) -> None:
    response = client.post('/api/ai/chat', json={'messages': [], 'context': {}}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()['details'][0]['field'] == 'messages'
    assert ai_gateway.calls == []


def test_chat_rejects_unknown_role_and_blank_content(client, auth_headers) -> None:
    response = client.post(
        '/api/ai/chat',
        json={'messages': [{'role': 'robot', 'content': 'hi'}, {'role': 'user', 'content': '  '}]},
        headers=auth_headers,
    )

    assert response.status_code == 400
    fields = {detail['field'] for detail in response.json()['details']}
    assert fields == {'messages.0.role', 'messages.1.content'}


def test_chat_surfaces_upstream_failure_as_server_error(client, auth_headers, ai_gateway) -> None:
    ai_gateway.error = UpstreamError('Failed to process chat', 'AI Gateway error: 502', upstream_status=502)

    response = client.post('/api/ai/chat', json={'messages': CONVERSATION}, headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {
        'error': 'Failed to process chat',
        'message': 'AI Gateway error: 502',
        'upstreamStatus': 502,
    }


def test_chat_failure_keeps_upstream_status_in_production(client, auth_headers, ai_gateway, monkeypatch) -> None:
    monkeypatch.setattr(config, 'APP_ENV', 'production')
    ai_gateway.error = UpstreamError('Failed to process chat', 'AI Gateway error: 502', upstream_status=502)

    response = client.post('/api/ai/chat', json={'messages': CONVERSATION}, headers=auth_headers)

    assert response.status_code == 500
    assert response.json()['message'] == 'AI Gateway error: 502'
    assert response.json()['upstreamStatus'] == 502


def test_study_recommendations_builds_prompt_from_student_profile(client, auth_headers, ai_gateway) -> None:
    response = client.post(
        '/api/ai/study-recommendations',
        json={'gradeLevel': 5, 'compositeLevel': 'Intermediate', 'nativeLanguage': 'Spanish'},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json() == {
        'success': True,
        'recommendations': '1. Read aloud daily.',
        'student': {'gradeLevel': 5, 'compositeLevel': 'Intermediate', 'ellStatus': None},
    }
    prompt = ai_gateway.calls[0][1]
    assert 'Grade Level: 5' in prompt
    assert 'ELL Status: Not specified' in prompt
    assert 'Native Language: Spanish' in prompt


def test_study_recommendations_requires_grade_level(client, auth_headers) -> None:
    response = client.post('/api/ai/study-recommendations', json={}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()['details'][0]['field'] == 'gradeLevel'


def test_flashcard_appends_grade_to_topic(client, auth_headers, ai_gateway) -> None:
    response = client.post(
        '/api/ai/flashcard',
        json={'topic': 'Fractions', 'content': 'Adding fractions', 'gradeLevel': 4},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()['flashcard'] == {'topic': 'Fractions', 'question': 'What is 1/2 + 1/4?', 'answer': '3/4'}
    assert ai_gateway.calls[0] == ('flashcard', 'Fractions (Grade 4)', 'Adding fractions')


def test_flashcard_requires_topic_and_content(client, auth_headers) -> None:
    response = client.post('/api/ai/flashcard', json={'topic': 'Fractions', 'content': ' '}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()['details'] == [{'field': 'content', 'message': 'Topic and content are required'}]


def test_quiz_uses_defaults(client, auth_headers, ai_gateway) -> None:
    response = client.post('/api/ai/quiz', json={'topic': 'Verbs'}, headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body['difficulty'] == 'medium'
    assert body['count'] == 3
    assert len(body['questions']) == 3
    assert ai_gateway.calls[0] == ('quiz', 'Verbs', 'medium', 3)


def test_quiz_rejects_unknown_difficulty(client, auth_headers) -> None:
    response = client.post('/api/ai/quiz', json={'topic': 'Verbs', 'difficulty': 'extreme'}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()['details'][0]['field'] == 'difficulty'


def test_ai_health_is_public(client) -> None:
    response = client.get('/api/ai/health')

    assert response.status_code == 200
    assert response.json() == {'success': True, 'gateway': {'status': 'ok'}}


def test_ai_health_reports_unavailable_gateway(client, ai_gateway) -> None:
    ai_gateway.error = UpstreamError('AI Gateway unavailable', 'connection refused', status_code=503)

    response = client.get('/api/ai/health')

    assert response.status_code == 503
    assert response.json()['error'] == 'AI Gateway unavailable'
