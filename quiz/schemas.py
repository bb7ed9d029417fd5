from typing import List, Optional

from pydantic import BaseModel, Field, StrictInt


class QuestionIn(BaseModel):
    question: str = Field(min_length=1)
    options: List[str]
    correct_option_index: StrictInt
    question_number: Optional[int] = None


class QuestionsReplace(BaseModel):
    questions: List[QuestionIn]


class VerifyAnswers(BaseModel):
    answers: List[StrictInt]
