"""
Scoring engine.

Pure functions over an answer map ({question_id: selected_option}) and a
QuizDefinition. No I/O: the attempt store calls these while it holds the
attempt row, so the same answers always produce the same score.
"""


def score(answers, quiz_def):
    total = 0.0
    for question in quiz_def.questions:
        if answers.get(question.id) == question.correct_option:
            total += question.weight
    return total


def grade(answers, quiz_def):
    """Per-question breakdown for result sheets."""
    graded = []
    for question in quiz_def.questions:
        selected = answers.get(question.id)
        graded.append({
            "question_id": question.id,
            "question_title": question.prompt,
            "options": list(question.options),
            "selected_option": selected,
            "correct_option": question.correct_option,
            "is_correct": selected == question.correct_option,
            "weight": question.weight,
        })
    return graded
