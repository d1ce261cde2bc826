from datetime import datetime, timezone


def isoformat(datetime_obj):
    """Format a stored (naive UTC) datetime as ISO-8601 with a Z suffix."""
    if not datetime_obj:
        return None
    return datetime_obj.isoformat(timespec="seconds") + "Z"


def parse_datetime(value):
    """
    Parse an ISO-8601 timestamp from a request body into naive UTC.
    Accepts a trailing 'Z' and explicit offsets; naive input is taken as UTC.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("Timestamp must be a non-empty ISO-8601 string.")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"Invalid timestamp: {value}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_option(value):
    """Coerce a submitted option number to int; bools and floats are rejected."""
    if isinstance(value, bool):
        raise ValueError("Option must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValueError("Option must be an integer.")


def validate_questions(questions):
    if not isinstance(questions, list) or not questions:
        raise ValueError("Questions must be a non-empty list.")
    for index, question in enumerate(questions, start=1):
        if not isinstance(question, dict):
            raise ValueError("Each question must be a dictionary.")
        missing = [
            key for key in ("question_title", "option1", "option2", "option3", "option4", "answer")
            if key not in question
        ]
        if missing:
            raise ValueError(f"Question {index} is missing {', '.join(missing)}.")
        answer = parse_option(question["answer"])
        if answer not in (1, 2, 3, 4):
            raise ValueError(f"Question {index}: 'answer' must be one of the options 1-4.")
        weight = question.get("weight", 1)
        if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight < 0:
            raise ValueError(f"Question {index}: 'weight' must be a non-negative number.")
