# exam_builder/tests/test_api.py
"""HTTP layer tests: routing, status codes and payload shapes."""

API = "/api/v1"


def _create_exam(client, title="Algebra Quiz", description=None):
    response = client.post(f"{API}/exams", json={"title": title, "description": description})
    assert response.status_code == 201
    return response.json()


def _create_question(client, exam_id, type="MULTIPLE_CHOICE", text="2+2=?", order_index=0):
    response = client.post(
        f"{API}/questions",
        json={
            "exam_id": exam_id,
            "type": type,
            "question_text": text,
            "points": 1,
            "order_index": order_index,
        },
    )
    assert response.status_code == 201
    return response.json()


class TestHealth:
    def test_health_check(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestExamRoutes:
    def test_create_and_list(self, client):
        exam = _create_exam(client, description="Week 3")

        assert exam["title"] == "Algebra Quiz"
        assert exam["created_at"] == exam["updated_at"]

        listed = client.get(f"{API}/exams").json()
        assert [e["id"] for e in listed] == [exam["id"]]
        assert "questions" not in listed[0]

    def test_empty_title_is_422(self, client):
        response = client.post(f"{API}/exams", json={"title": ""})
        assert response.status_code == 422

    def test_blank_title_is_400(self, client):
        response = client.post(f"{API}/exams", json={"title": "   "})
        assert response.status_code == 400

    def test_get_missing_exam(self, client):
        assert client.get(f"{API}/exams/999").status_code == 404

    def test_aggregate_shape(self, client):
        exam = _create_exam(client)
        mc = _create_question(client, exam["id"])
        formula = _create_question(client, exam["id"], type="FORMULA", text="derivative of x²", order_index=1)
        client.post(
            f"{API}/options",
            json={"question_id": mc["id"], "option_text": "4", "is_correct": True, "order_index": 0},
        )

        body = client.get(f"{API}/exams/{exam['id']}").json()

        first, second = body["questions"]
        assert first["id"] == mc["id"]
        assert first["payload"]["kind"] == "options"
        assert first["payload"]["options"][0]["option_text"] == "4"
        assert second["id"] == formula["id"]
        assert second["payload"] is None

    def test_patch_without_fields_advances_updated_at(self, client):
        exam = _create_exam(client)

        response = client.patch(f"{API}/exams/{exam['id']}", json={})

        assert response.status_code == 200
        assert response.json()["updated_at"] > exam["updated_at"]

    def test_patch_missing_exam(self, client):
        assert client.patch(f"{API}/exams/999", json={"title": "x"}).status_code == 404

    def test_delete(self, client):
        exam = _create_exam(client)

        assert client.delete(f"{API}/exams/{exam['id']}").json() == {"deleted": True}
        assert client.delete(f"{API}/exams/{exam['id']}").json() == {"deleted": False}
        assert client.get(f"{API}/exams/{exam['id']}").status_code == 404

    def test_issues(self, client):
        exam = _create_exam(client)
        _create_question(client, exam["id"])

        issues = client.get(f"{API}/exams/{exam['id']}/issues").json()

        assert [i["code"] for i in issues] == ["MISSING_PAYLOAD"]
        assert client.get(f"{API}/exams/999/issues").status_code == 404


class TestQuestionRoutes:
    def test_create_against_missing_exam(self, client):
        response = client.post(
            f"{API}/questions",
            json={
                "exam_id": 999,
                "type": "FORMULA",
                "question_text": "?",
                "points": 1,
                "order_index": 0,
            },
        )
        assert response.status_code == 404

    def test_invalid_points(self, client):
        exam = _create_exam(client)
        response = client.post(
            f"{API}/questions",
            json={
                "exam_id": exam["id"],
                "type": "FORMULA",
                "question_text": "?",
                "points": 0,
                "order_index": 0,
            },
        )
        assert response.status_code == 422

    def test_unknown_type(self, client):
        exam = _create_exam(client)
        response = client.post(
            f"{API}/questions",
            json={
                "exam_id": exam["id"],
                "type": "ESSAY",
                "question_text": "?",
                "points": 1,
                "order_index": 0,
            },
        )
        assert response.status_code == 422

    def test_patch_and_empty_patch(self, client):
        exam = _create_exam(client)
        question = _create_question(client, exam["id"])

        response = client.patch(f"{API}/questions/{question['id']}", json={"points": 3})
        assert response.status_code == 200
        assert response.json()["points"] == 3

        assert client.patch(f"{API}/questions/{question['id']}", json={}).status_code == 404

    def test_delete(self, client):
        exam = _create_exam(client)
        question = _create_question(client, exam["id"])

        assert client.delete(f"{API}/questions/{question['id']}").json() == {"deleted": True}
        assert client.delete(f"{API}/questions/{question['id']}").json() == {"deleted": False}


class TestPayloadRoutes:
    def test_option_on_formula_question_is_409(self, client):
        exam = _create_exam(client)
        question = _create_question(client, exam["id"], type="FORMULA", text="d/dx x^2")

        response = client.post(
            f"{API}/options",
            json={"question_id": question["id"], "option_text": "2x", "is_correct": True, "order_index": 0},
        )

        assert response.status_code == 409

    def test_option_on_missing_question_is_404(self, client):
        response = client.post(
            f"{API}/options",
            json={"question_id": 999, "option_text": "x", "is_correct": True, "order_index": 0},
        )
        assert response.status_code == 404

    def test_option_lifecycle(self, client):
        exam = _create_exam(client)
        question = _create_question(client, exam["id"])
        option = client.post(
            f"{API}/options",
            json={"question_id": question["id"], "option_text": "3", "is_correct": False, "order_index": 0},
        ).json()

        patched = client.patch(f"{API}/options/{option['id']}", json={"option_text": "4", "is_correct": True})
        assert patched.status_code == 200
        assert patched.json()["is_correct"] is True

        assert client.patch(f"{API}/options/{option['id']}", json={}).status_code == 404
        assert client.delete(f"{API}/options/{option['id']}").json() == {"deleted": True}

    def test_formula_answer_lifecycle(self, client):
        exam = _create_exam(client)
        question = _create_question(client, exam["id"], type="FORMULA", text="derivative of x²")

        created = client.post(
            f"{API}/formula-answers",
            json={"question_id": question["id"], "expected_answer": "2x"},
        )
        assert created.status_code == 201
        answer = created.json()

        duplicate = client.post(
            f"{API}/formula-answers",
            json={"question_id": question["id"], "expected_answer": "x^2"},
        )
        assert duplicate.status_code == 409

        unchanged = client.patch(f"{API}/formula-answers/{answer['id']}", json={})
        assert unchanged.status_code == 200
        assert unchanged.json()["expected_answer"] == "2x"

        assert client.patch(f"{API}/formula-answers/999", json={}).status_code == 404
        assert client.delete(f"{API}/formula-answers/{answer['id']}").json() == {"deleted": True}

    def test_formula_answer_on_multiple_choice_is_409(self, client):
        exam = _create_exam(client)
        question = _create_question(client, exam["id"])

        response = client.post(
            f"{API}/formula-answers",
            json={"question_id": question["id"], "expected_answer": "4"},
        )
        assert response.status_code == 409
