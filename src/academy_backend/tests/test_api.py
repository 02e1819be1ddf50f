"""
End-to-end tests of the HTTP API with FastAPI's TestClient.
"""

from academy_backend.api.exceptions import domain_error_to_http_exception
from academy_backend.errors import Conflict, EnrollmentRequired, InvalidOrder
from academy_backend.model import Enrollment, Purchase
from academy_backend.settings import settings
from academy_backend.tests.conftest import auth_headers
from academy_backend.tests.fixtures import build_course, make_course, make_user


class TestCatalog:

    def test_anonymous_sees_published_courses(self, db, client):
        published = make_course(db, title="Published")
        make_course(db, title="Draft", is_published=False)

        response = client.get("/courses")

        assert response.status_code == 200
        assert [c["id"] for c in response.json()] == [published.id]
        assert response.headers["X-Total-Count"] == "1"

    def test_free_and_premium_lists(self, db, client):
        free = make_course(db, is_free=True, price=None)
        premium = make_course(db, is_premium=True)

        assert [c["id"] for c in client.get("/courses/free").json()] == [free.id]
        assert [c["id"] for c in client.get("/courses/premium").json()] == [premium.id]

    def test_admin_lists_drafts(self, db, client, admin, member):
        make_course(db, is_published=False)

        assert len(client.get("/admin/courses", headers=auth_headers(admin)).json()) == 1
        assert client.get("/admin/courses", headers=auth_headers(member)).status_code == 403

    def test_draft_course_is_hidden(self, db, client, admin):
        draft = make_course(db, is_published=False)

        assert client.get(f"/courses/{draft.id}").status_code == 404
        assert client.get(f"/courses/{draft.id}", headers=auth_headers(admin)).json()["id"] == draft.id

    def test_unknown_course(self, client):
        response = client.get("/courses/missing")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "not_found"


class TestIdentity:

    def test_unknown_user_is_rejected(self, db, client):
        course = make_course(db, is_free=True)

        response = client.get(f"/courses/{course.id}/tree", headers={settings.IDENTITY_HEADER: "nobody"})

        assert response.status_code == 401

    def test_writes_need_an_identity(self, db, client):
        course = make_course(db, is_free=True)

        assert client.post(f"/courses/{course.id}/enroll").status_code == 401

    def test_current_user(self, db, client):
        user = make_user(db, level="super_admin")

        response = client.get("/auth/user", headers=auth_headers(user))

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["id"] == user.id
        assert set(body["capabilities"]) == {"ManageBlog", "ManageCourses", "ModerateForum", "ManageAccounts"}


class TestLearnerFlow:

    def test_free_course_tree_and_completion(self, db, client, member):
        course, modules, lessons = build_course(db, [(True, [True, True]), (False, [True])], is_free=True)

        tree = client.get(f"/courses/{course.id}/tree").json()
        assert tree["access_tier"] == "FreePreview"
        assert [m["id"] for m in tree["modules"]] == [modules[0].id]

        response = client.post(f"/lessons/{lessons[0].id}/complete", headers=auth_headers(member))
        assert response.status_code == 200
        assert response.json()["progress"] == 50

        progress = client.get(f"/user/enrollments/{course.id}", headers=auth_headers(member)).json()
        assert progress["completed_lessons"] == 1
        assert progress["modules"][0]["progress"] == 50

    def test_unmark_completed_lesson(self, db, client, member):
        course, _, lessons = build_course(db, [(True, [True, True])], is_free=True)
        client.post(f"/lessons/{lessons[0].id}/complete", headers=auth_headers(member))
        client.post(f"/lessons/{lessons[1].id}/complete", headers=auth_headers(member))

        response = client.delete(f"/lessons/{lessons[1].id}/complete", headers=auth_headers(member))

        assert response.status_code == 200
        assert response.json()["progress"] == 50
        assert response.json()["completed"] is False

    def test_unmark_without_enrollment(self, db, client, member):
        course, _, lessons = build_course(db, [(True, [True])], is_free=True)

        response = client.delete(f"/lessons/{lessons[0].id}/complete", headers=auth_headers(member))

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "enrollment_required"

    def test_paid_course_purchase_flow(self, db, client, member):
        course, _, lessons = build_course(db, [(True, [True, True])], price="49.00")

        enroll = client.post(f"/courses/{course.id}/enroll", headers=auth_headers(member))
        assert enroll.status_code == 403
        assert enroll.json()["detail"]["code"] == "forbidden"

        complete = client.post(f"/lessons/{lessons[0].id}/complete", headers=auth_headers(member))
        assert complete.status_code == 403
        assert complete.json()["detail"]["code"] == "access_denied"

        event = {"user_id": member.id, "course_id": course.id, "amount": "49.00"}
        first = client.post("/payments/purchase-completed", json=event)
        second = client.post("/payments/purchase-completed", json=event)
        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["id"] == second.json()["id"]
        assert db.query(Purchase).count() == 1
        assert db.query(Enrollment).count() == 0

        access = client.get(f"/user/course-access/{course.id}", headers=auth_headers(member)).json()
        assert access == {"course_id": course.id, "access_tier": "PurchasedAccess", "has_access": True}

        complete = client.post(f"/lessons/{lessons[0].id}/complete", headers=auth_headers(member))
        assert complete.status_code == 200
        assert complete.json()["progress"] == 50

        enrollments = client.get("/user/enrollments", headers=auth_headers(member)).json()
        assert [e["course_id"] for e in enrollments] == [course.id]

    def test_progress_without_enrollment(self, db, client, member):
        course = make_course(db, is_free=True)

        response = client.get(f"/user/enrollments/{course.id}", headers=auth_headers(member))

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "enrollment_required"


class TestPayments:

    def test_non_positive_amount(self, db, client, member):
        course = make_course(db)

        response = client.post("/payments/purchase-completed", json={"user_id": member.id, "course_id": course.id, "amount": "0"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "invalid_request"

    def test_webhook_secret(self, db, client, member, monkeypatch):
        monkeypatch.setattr(settings, "PAYMENT_WEBHOOK_SECRET", "s3cret")
        course = make_course(db)
        event = {"user_id": member.id, "course_id": course.id, "amount": "49.00"}

        assert client.post("/payments/purchase-completed", json=event).status_code == 401
        assert client.post("/payments/purchase-completed", json=event, headers={"X-Payment-Secret": "wrong"}).status_code == 401
        assert client.post("/payments/purchase-completed", json=event, headers={"X-Payment-Secret": "s3cret"}).status_code == 201


class TestAdminStructure:

    def test_module_and_lesson_lifecycle(self, db, client, admin):
        course = make_course(db)
        headers = auth_headers(admin)

        module = client.post("/admin/modules", json={"course_id": course.id, "title": "Basics"}, headers=headers)
        assert module.status_code == 201
        module_id = module.json()["id"]

        lesson_ids = []
        for title in ["A", "B", "C", "D"]:
            lesson = client.post("/admin/lessons", json={"module_id": module_id, "title": title, "content_type": "quiz"}, headers=headers)
            assert lesson.status_code == 201
            lesson_ids.append(lesson.json()["id"])

        moved = client.put(f"/admin/lessons/{lesson_ids[3]}/reorder", json={"new_index": 1}, headers=headers)
        assert moved.status_code == 200
        assert moved.json()["order_index"] == 1

        tree = client.get(f"/courses/{course.id}/tree", headers=headers).json()
        assert [l["title"] for l in tree["modules"][0]["lessons"]] == ["A", "D", "B", "C"]
        assert all(l["is_draft"] for l in tree["modules"][0]["lessons"])

        patched = client.patch(f"/admin/lessons/{lesson_ids[0]}", json={"is_published": True, "duration": 12}, headers=headers)
        assert patched.json()["is_published"] is True
        assert patched.json()["duration"] == 12

        assert client.delete(f"/admin/lessons/{lesson_ids[1]}", headers=headers).json() == {"ok": True}
        assert client.delete(f"/admin/modules/{module_id}", headers=headers).status_code == 200

        tree = client.get(f"/courses/{course.id}/tree", headers=headers).json()
        assert tree["modules"] == []

    def test_invalid_reorder(self, db, client, admin):
        course, _, lessons = build_course(db, [(True, [True, True])])

        response = client.put(f"/admin/lessons/{lessons[0].id}/reorder", json={"new_index": 2}, headers=auth_headers(admin))

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "invalid_order"

    def test_member_is_forbidden(self, db, client, member):
        course = make_course(db)

        response = client.post("/admin/modules", json={"course_id": course.id, "title": "Basics"}, headers=auth_headers(member))

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "forbidden"

    def test_payload_validation(self, db, client, admin):
        response = client.post("/admin/lessons", json={"module_id": "x", "title": "A", "content_type": "podcast"}, headers=auth_headers(admin))

        assert response.status_code == 422


class TestAccounts:

    def test_permissions_update(self, db, client, member):
        root = make_user(db, level="super_admin")

        response = client.put(f"/admin/users/{member.id}/permissions", json={"permission_level": "blog_admin", "is_premium": True}, headers=auth_headers(root))

        assert response.status_code == 200
        assert response.json()["permission_level"] == "blog_admin"
        assert response.json()["is_premium"] is True

    def test_course_admin_cannot_manage_accounts(self, db, client, admin, member):
        response = client.put(f"/admin/users/{member.id}/permissions", json={"is_premium": True}, headers=auth_headers(admin))

        assert response.status_code == 403

    def test_grant_course_creates_enrollment(self, db, client, member):
        root = make_user(db, level="super_admin")
        course = make_course(db)

        response = client.post(f"/admin/users/{member.id}/grant-course", json={"course_id": course.id}, headers=auth_headers(root))

        assert response.status_code == 200
        assert response.json()["course_id"] == course.id
        access = client.get(f"/user/course-access/{course.id}", headers=auth_headers(member)).json()
        assert access["access_tier"] == "EnrolledAccess"

    def test_list_users(self, db, client, member):
        root = make_user(db, level="super_admin")

        response = client.get("/admin/users", params={"permission_level": "super_admin"}, headers=auth_headers(root))

        assert [u["id"] for u in response.json()] == [root.id]


class TestErrorMapping:

    def test_conflict_asks_for_retry(self):
        exception = domain_error_to_http_exception(Conflict("busy"))

        assert exception.status_code == 409
        assert exception.headers == {"Retry-After": "1"}
        assert exception.detail == {"code": "conflict", "message": "busy"}

    def test_enrollment_required_and_invalid_order(self):
        assert domain_error_to_http_exception(EnrollmentRequired()).status_code == 409
        assert domain_error_to_http_exception(InvalidOrder("x")).status_code == 400
