"""Answer Validator

Forward questions expect the romanized/derived form: the submission is
trimmed and case-folded before comparing. Reverse questions expect the
native-script form: trimmed only, compared exactly. There is no fuzzy
matching and no romaji-to-kana conversion.
"""
from engines.questions import Question


def normalize_answer(raw_answer: str, question: Question) -> str:
    answer = raw_answer.strip()
    if question.direction == "forward":
        return answer.casefold()
    return answer


def is_correct(question: Question, raw_answer: str) -> bool:
    if question.direction == "forward":
        return normalize_answer(raw_answer, question) == question.item.answer_form.casefold()
    return normalize_answer(raw_answer, question) == question.item.prompt_form
