"""
Input validation for quiz authoring and submissions.

Question payloads are checked against the shape their type allows, so
grading never has to second-guess stored data:

- multiple_choice: at least two non-empty options, correct answer is one of them
- true_false: no options, correct answer is True or False
- short_answer: no options, non-empty correct answer
"""
from typing import Any, Optional

from quizhub.config import config
from quizhub.quiz.errors import ValidationError
from quizhub.quiz.grading import normalize_answer
from quizhub.quiz.models import (
    MULTIPLE_CHOICE,
    QUESTION_TYPES,
    SHORT_ANSWER,
    TRUE_FALSE,
    TRUE_FALSE_CHOICES,
)


TITLE_MAX_LENGTH = 255
QUIZ_FIELDS = ('title', 'description', 'time_limit_minutes', 'passing_score', 'max_attempts', 'is_active')


def _is_int(value: Any) -> bool:
    # bool is an int subclass; true/false is never a valid count or id
    return isinstance(value, int) and not isinstance(value, bool)


def _require_int(data: dict, field: str, minimum: int, maximum: Optional[int] = None,
                 prefix: str = '') -> int:
    value = data.get(field)
    label = f"{prefix}{field}"
    if not _is_int(value):
        raise ValidationError(f"{label} must be an integer", field=label)
    if value < minimum:
        raise ValidationError(f"{label} must be at least {minimum}", field=label)
    if maximum is not None and value > maximum:
        raise ValidationError(f"{label} cannot exceed {maximum}", field=label)
    return value


def _optional_text(data: dict, field: str) -> Optional[str]:
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)
    return value.strip() or None


def validate_quiz_payload(data: Any, partial: bool = False) -> dict:
    """
    Validate quiz settings.

    Args:
        data: Decoded JSON body
        partial: When True only the supplied fields are validated (updates)

    Returns:
        Dictionary of cleaned values, defaults filled in unless partial
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    cleaned = {}

    if 'title' in data or not partial:
        title = data.get('title')
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Title is required", field='title')
        title = title.strip()
        if len(title) > TITLE_MAX_LENGTH:
            raise ValidationError(f"Title must be less than {TITLE_MAX_LENGTH} characters", field='title')
        cleaned['title'] = title

    if 'description' in data:
        cleaned['description'] = _optional_text(data, 'description')

    if data.get('time_limit_minutes') is not None:
        cleaned['time_limit_minutes'] = _require_int(data, 'time_limit_minutes', 1)
    elif 'time_limit_minutes' in data:
        cleaned['time_limit_minutes'] = None

    # passing_score is NOT NULL; null is rejected rather than ignored
    if 'passing_score' in data:
        cleaned['passing_score'] = _require_int(data, 'passing_score', 0, 100)
    elif not partial:
        cleaned['passing_score'] = config.DEFAULT_PASSING_SCORE

    # An explicit null means unlimited attempts
    if 'max_attempts' in data:
        if data['max_attempts'] is None:
            cleaned['max_attempts'] = None
        else:
            cleaned['max_attempts'] = _require_int(data, 'max_attempts', 1)
    elif not partial:
        cleaned['max_attempts'] = config.DEFAULT_MAX_ATTEMPTS

    if 'is_active' in data:
        if not isinstance(data['is_active'], bool):
            raise ValidationError("is_active must be a boolean", field='is_active')
        cleaned['is_active'] = data['is_active']
    elif not partial:
        cleaned['is_active'] = True

    if partial and not cleaned:
        raise ValidationError(f"Provide at least one of: {', '.join(QUIZ_FIELDS)}")

    return cleaned


def validate_question_payload(data: Any, default_order: Optional[int] = None, prefix: str = '') -> dict:
    """
    Validate one question and normalize it to its type's shape.

    Args:
        data: Decoded question object
        default_order: order_index used when the payload omits it
        prefix: Field prefix for error messages, e.g. ``questions[2].``
    """
    if not isinstance(data, dict):
        raise ValidationError(f"{prefix or 'question'} must be an object", field=prefix.rstrip('.') or None)

    question_text = data.get('question_text')
    if not isinstance(question_text, str) or not question_text.strip():
        raise ValidationError("Question text is required", field=f"{prefix}question_text")

    question_type = data.get('question_type', MULTIPLE_CHOICE)
    if isinstance(question_type, str):
        question_type = question_type.strip().lower()
    if question_type not in QUESTION_TYPES:
        raise ValidationError(
            f"Invalid question_type. Must be: {', '.join(QUESTION_TYPES)}",
            field=f"{prefix}question_type"
        )

    correct_answer = data.get('correct_answer')
    if not isinstance(correct_answer, str) or not correct_answer.strip():
        raise ValidationError("Correct answer is required", field=f"{prefix}correct_answer")
    correct_answer = correct_answer.strip()

    options = data.get('options')
    if question_type == MULTIPLE_CHOICE:
        if not isinstance(options, list) or len(options) < 2:
            raise ValidationError(
                "multiple_choice questions require at least 2 options",
                field=f"{prefix}options"
            )
        cleaned_options = []
        for idx, option in enumerate(options):
            if not isinstance(option, str) or not option.strip():
                raise ValidationError("Options must be non-empty strings", field=f"{prefix}options[{idx}]")
            cleaned_options.append(option.strip())
        if normalize_answer(correct_answer) not in {normalize_answer(o) for o in cleaned_options}:
            raise ValidationError(
                "Correct answer must match one of the options",
                field=f"{prefix}correct_answer"
            )
        options = cleaned_options
    else:
        if options:
            raise ValidationError(
                f"{question_type} questions do not take options",
                field=f"{prefix}options"
            )
        options = None

    if question_type == TRUE_FALSE:
        matches = [c for c in TRUE_FALSE_CHOICES if normalize_answer(c) == normalize_answer(correct_answer)]
        if not matches:
            raise ValidationError("Correct answer must be True or False", field=f"{prefix}correct_answer")
        correct_answer = matches[0]

    if data.get('points') is None:
        points = 1
    else:
        points = _require_int(data, 'points', 1, prefix=prefix)

    if data.get('order_index') is None:
        if default_order is None:
            raise ValidationError("order_index is required", field=f"{prefix}order_index")
        order_index = default_order
    else:
        order_index = _require_int(data, 'order_index', 1, prefix=prefix)

    return {
        'question_type': question_type,
        'question_text': question_text.strip(),
        'options': options,
        'correct_answer': correct_answer,
        'points': points,
        'order_index': order_index,
    }


def validate_questions(items: Any) -> list:
    """Validate a list of questions, assigning order 1..n where omitted."""
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValidationError("questions must be a list", field='questions')

    questions = [
        validate_question_payload(item, default_order=idx + 1, prefix=f"questions[{idx}].")
        for idx, item in enumerate(items)
    ]
    seen = set()
    for idx, question in enumerate(questions):
        if question['order_index'] in seen:
            raise ValidationError(
                "order_index must be unique within a quiz",
                field=f"questions[{idx}].order_index"
            )
        seen.add(question['order_index'])
    return questions


def parse_submitted_answers(answers: Any) -> dict:
    """
    Turn a submission's answer list into ``{question_id: answer}``.

    Each entry needs an integer ``question_id`` and an ``answer`` that is a
    string or null. A repeated question id keeps its first answer.
    """
    if answers is None:
        raise ValidationError("answers is required", field='answers')
    if not isinstance(answers, list):
        raise ValidationError("answers must be a list", field='answers')

    submitted = {}
    for idx, entry in enumerate(answers):
        field = f"answers[{idx}]"
        if not isinstance(entry, dict):
            raise ValidationError(f"{field} must be an object", field=field)
        if 'question_id' not in entry:
            raise ValidationError(f"{field}.question_id is required", field=f"{field}.question_id")
        question_id = entry['question_id']
        if not _is_int(question_id):
            raise ValidationError(f"{field}.question_id must be an integer", field=f"{field}.question_id")
        if 'answer' not in entry:
            raise ValidationError(f"{field}.answer is required", field=f"{field}.answer")
        answer = entry['answer']
        if answer is not None and not isinstance(answer, str):
            raise ValidationError(f"{field}.answer must be a string", field=f"{field}.answer")
        submitted.setdefault(question_id, answer or "")
    return submitted


def parse_time_spent(value: Any) -> Optional[int]:
    if value is None:
        return None
    if not _is_int(value) or value < 0:
        raise ValidationError("time_spent_seconds must be a non-negative integer", field='time_spent_seconds')
    return value
