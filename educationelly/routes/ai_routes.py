from typing import Literal

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field, field_validator

from educationelly.auth.dependencies import get_current_user
from educationelly.models.user import User
from educationelly.services.ai_gateway import AIGatewayClient

router = APIRouter(tags=['ai'])

CHAT_APP_NAME = 'educationelly'
MAX_CHAT_MESSAGES = 50
MAX_QUIZ_QUESTIONS = 20


def _require_text(value: str, message: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(message)
    return normalized


class ChatMessage(BaseModel):
    role: Literal['user', 'assistant', 'system']
    content: str

    @field_validator('content')
    @classmethod
    def validate_content(cls, value: str) -> str:
        return _require_text(value, 'Message content is required')


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1, max_length=MAX_CHAT_MESSAGES)
    context: dict = Field(default_factory=dict)


class ChatResponse(BaseModel):
    response: str | None = None
    model: str | None = None
    backend: str | None = None


class StudyRecommendationsRequest(BaseModel):
    gradeLevel: int = Field(ge=0, le=12)
    compositeLevel: str | None = None
    ellStatus: str | None = None
    nativeLanguage: str | None = None


class FlashcardRequest(BaseModel):
    topic: str
    content: str
    gradeLevel: int | None = Field(default=None, ge=0, le=12)

    @field_validator('topic', 'content')
    @classmethod
    def validate_text(cls, value: str) -> str:
        return _require_text(value, 'Topic and content are required')


class QuizRequest(BaseModel):
    topic: str
    difficulty: Literal['easy', 'medium', 'hard'] = 'medium'
    count: int = Field(default=3, ge=1, le=MAX_QUIZ_QUESTIONS)
    gradeLevel: int | None = Field(default=None, ge=0, le=12)

    @field_validator('topic')
    @classmethod
    def validate_topic(cls, value: str) -> str:
        return _require_text(value, 'Topic is required')


def get_ai_gateway(request: Request) -> AIGatewayClient:
    return request.app.state.ai_gateway


def build_study_prompt(data: StudyRecommendationsRequest) -> str:
    return (
        'Generate 3 study recommendations for an English Language Learner:\n'
        f'Grade Level: {data.gradeLevel}\n'
        f'Proficiency: {data.compositeLevel or "Not specified"}\n'
        f'ELL Status: {data.ellStatus or "Not specified"}\n'
        f'Native Language: {data.nativeLanguage or "Not specified"}\n'
        '\n'
        'Provide specific, actionable recommendations for improving English language skills.'
    )


@router.post('/chat', response_model=ChatResponse)
async def chat(
    data: ChatRequest,
    current_user: User = Depends(get_current_user),
    gateway: AIGatewayClient = Depends(get_ai_gateway),
):
    context = {'app': CHAT_APP_NAME, **data.context}
    result = await gateway.chat([message.model_dump() for message in data.messages], context)
    return {
        'response': result.get('response'),
        'model': result.get('model'),
        'backend': result.get('backend'),
    }


@router.post('/study-recommendations')
async def study_recommendations(
    data: StudyRecommendationsRequest,
    current_user: User = Depends(get_current_user),
    gateway: AIGatewayClient = Depends(get_ai_gateway),
):
    result = await gateway.generate(build_study_prompt(data))
    return {
        'success': True,
        'recommendations': result.get('response'),
        'student': {
            'gradeLevel': data.gradeLevel,
            'compositeLevel': data.compositeLevel,
            'ellStatus': data.ellStatus,
        },
    }


@router.post('/flashcard')
async def flashcard(
    data: FlashcardRequest,
    current_user: User = Depends(get_current_user),
    gateway: AIGatewayClient = Depends(get_ai_gateway),
):
    topic = f'{data.topic} (Grade {data.gradeLevel})' if data.gradeLevel is not None else data.topic
    result = await gateway.flashcard(topic, data.content)
    return {
        'success': True,
        'flashcard': {
            'topic': result.get('topic'),
            'question': result.get('question'),
            'answer': result.get('answer'),
        },
        'gradeLevel': data.gradeLevel,
    }


@router.post('/quiz')
async def quiz(
    data: QuizRequest,
    current_user: User = Depends(get_current_user),
    gateway: AIGatewayClient = Depends(get_ai_gateway),
):
    topic = f'{data.topic} for Grade {data.gradeLevel}' if data.gradeLevel is not None else data.topic
    result = await gateway.quiz(topic, data.difficulty, data.count)
    return {
        'success': True,
        'topic': data.topic,
        'difficulty': data.difficulty,
        'gradeLevel': data.gradeLevel,
        'count': result.get('count'),
        'questions': result.get('questions'),
    }


@router.get('/health')
async def ai_health(gateway: AIGatewayClient = Depends(get_ai_gateway)):
    return {'success': True, 'gateway': await gateway.health()}
