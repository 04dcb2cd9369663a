from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from controller.question_bank_controller import list_by_bank, add_question, update_question, delete_question
from controller.quizzer_controller import register_user, get_access_data, QuizzerRegister
from middleware.auth_middleware import User, authorize
from middleware.auth_utils import SCOPE_QUIZZER

router = APIRouter(prefix="/api/quizzer")

EDITORS = ["Owner", "Manager", "Editor"]
LEADS = ["Owner", "Manager"]


class QuestionPayload(BaseModel):
    question: str
    type: str
    options: Optional[str] = None
    answer: Optional[str] = None
    ref1: Optional[str] = None
    ref2: Optional[str] = None
    ref3: Optional[str] = None
    ref4: Optional[str] = None


# Team management
@router.post("/users/register", status_code=201)  # Called by: Manager/Owner dashboard | Returns: Registration confirmation
async def register_quizzer_user(payload: QuizzerRegister, user: User = Depends(authorize(SCOPE_QUIZZER, LEADS))):
    return await register_user(payload, user)

@router.get("/access-data")  # Called by: Manager/Owner dashboard | Returns: Banks the caller may manage
async def access_data(user: User = Depends(authorize(SCOPE_QUIZZER, LEADS))):
    return await get_access_data(user)

# Question bank CRUD
@router.get("/questions/{bank_name}")  # Called by: Editor dashboard | Returns: All questions in the bank
async def get_questions(bank_name: str, user: User = Depends(authorize(SCOPE_QUIZZER, EDITORS))):
    return await list_by_bank(bank_name)

@router.post("/questions/{bank_name}", status_code=201)  # Called by: Editor add form | Returns: New question id
async def create_question(bank_name: str, payload: QuestionPayload, user: User = Depends(authorize(SCOPE_QUIZZER, EDITORS))):
    return await add_question(bank_name, payload.model_dump())

@router.put("/questions/{bank_name}/{question_id}")  # Called by: Editor edit form | Returns: Update confirmation
async def edit_question(bank_name: str, question_id: str, payload: QuestionPayload, user: User = Depends(authorize(SCOPE_QUIZZER, EDITORS))):
    return await update_question(bank_name, question_id, payload.model_dump())

@router.delete("/questions/{bank_name}/{question_id}")  # Called by: Editor delete button | Returns: Delete confirmation
async def remove_question(bank_name: str, question_id: str, user: User = Depends(authorize(SCOPE_QUIZZER, EDITORS))):
    return await delete_question(bank_name, question_id)
