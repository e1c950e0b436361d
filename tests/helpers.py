SUMMARY = "- Photosynthesis converts light into chemical energy.\n- It happens in plants."


def make_quiz(num_questions: int = 5) -> dict:
    return {
        "questions": [
            {
                "question": f"Question {i + 1}?",
                "options": ["Light", "Sound", "Heat", "Wind"],
                "correctAnswer": i % 4,
            }
            for i in range(num_questions)
        ]
    }
