"""
Tests for structure mutations: ordering, deletion, permissions and retries.
"""

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from academy_backend.database import build_engine, run_atomic
from academy_backend.errors import Conflict, Forbidden, InvalidOrder, InvalidRequest, NotFound
from academy_backend.interface.course_lessons import CourseLessonCreate, ContentType
from academy_backend.interface.course_modules import CourseModuleCreate, CourseModuleUpdate
from academy_backend.interface.courses import CourseCreate, CourseUpdate
from academy_backend.model import Base, Course, CourseLesson, CourseModule, Enrollment, LessonCompletion
from academy_backend.permissions.principal import Principal
from academy_backend.services import progress, structure
from academy_backend.services.progress import record_completion
from academy_backend.settings import settings
from academy_backend.tests.fixtures import build_course, make_course, make_user


def _lesson_order(db, module_id):
    return [(l.id, l.order_index) for l in db.query(CourseLesson).filter(
        CourseLesson.module_id == module_id).order_by(CourseLesson.order_index).all()]


def _module_order(db, course_id):
    return [(m.id, m.order_index) for m in db.query(CourseModule).filter(
        CourseModule.course_id == course_id).order_by(CourseModule.order_index).all()]


class TestCreate:

    def test_modules_and_lessons_are_appended(self, db, admin_principal):
        course = make_course(db)

        modules = [
            structure.create_module(db, admin_principal, CourseModuleCreate(course_id=course.id, title=f"M{i}"))
            for i in range(3)
        ]
        lessons = [
            structure.create_lesson(db, admin_principal, CourseLessonCreate(module_id=modules[0].id, title=f"L{i}", content_type=ContentType.video))
            for i in range(2)
        ]

        assert [m.order_index for m in modules] == [0, 1, 2]
        assert [l.order_index for l in lessons] == [0, 1]
        assert lessons[0].content_type == "video"
        assert modules[0].is_published is False

    def test_create_requires_manage_courses(self, db):
        course = make_course(db)
        blog_admin = Principal.from_user(make_user(db, level="blog_admin"))

        with pytest.raises(Forbidden):
            structure.create_module(db, blog_admin, CourseModuleCreate(course_id=course.id, title="M"))

    def test_create_in_unknown_parent(self, db, admin_principal):
        with pytest.raises(NotFound):
            structure.create_module(db, admin_principal, CourseModuleCreate(course_id="missing", title="M"))

        with pytest.raises(NotFound):
            structure.create_lesson(db, admin_principal, CourseLessonCreate(module_id="missing", title="L"))


class TestReorder:

    def test_move_last_lesson_forward(self, db, admin_principal):
        """[0,1,2,3] moving 3 to 1 gives [0,3,1,2] renumbered 0..3"""
        course, modules, lessons = build_course(db, [(True, [True, True, True, True])])
        l0, l1, l2, l3 = [l.id for l in lessons]

        moved = structure.reorder_lesson(db, admin_principal, l3, 1)

        assert moved.order_index == 1
        assert _lesson_order(db, modules[0].id) == [(l0, 0), (l3, 1), (l1, 2), (l2, 3)]

    def test_move_first_lesson_to_end(self, db, admin_principal):
        course, modules, lessons = build_course(db, [(True, [True, True, True])])
        l0, l1, l2 = [l.id for l in lessons]

        structure.reorder_lesson(db, admin_principal, l0, 2)

        assert _lesson_order(db, modules[0].id) == [(l1, 0), (l2, 1), (l0, 2)]

    def test_same_index_is_a_no_op(self, db, admin_principal):
        course, modules, lessons = build_course(db, [(True, [True, True])])
        before = _lesson_order(db, modules[0].id)

        structure.reorder_lesson(db, admin_principal, lessons[1].id, 1)

        assert _lesson_order(db, modules[0].id) == before

    @pytest.mark.parametrize("new_index", [-1, 4, 100])
    def test_out_of_range(self, db, admin_principal, new_index):
        course, modules, lessons = build_course(db, [(True, [True, True, True, True])])
        before = _lesson_order(db, modules[0].id)

        with pytest.raises(InvalidOrder):
            structure.reorder_lesson(db, admin_principal, lessons[0].id, new_index)

        assert _lesson_order(db, modules[0].id) == before

    def test_reorder_modules(self, db, admin_principal):
        course, modules, _ = build_course(db, [(True, []), (True, []), (False, [])])
        m0, m1, m2 = [m.id for m in modules]

        structure.reorder_module(db, admin_principal, m2, 0)

        assert _module_order(db, course.id) == [(m2, 0), (m0, 1), (m1, 2)]

    def test_reorder_requires_manage_courses(self, db, member_principal):
        course, _, lessons = build_course(db, [(True, [True, True])])

        with pytest.raises(Forbidden):
            structure.reorder_lesson(db, member_principal, lessons[1].id, 0)

    def test_unknown_lesson(self, db, admin_principal):
        with pytest.raises(NotFound):
            structure.reorder_lesson(db, admin_principal, "missing", 0)


class TestDelete:

    def test_delete_lesson_renumbers_survivors(self, db, admin_principal):
        course, modules, lessons = build_course(db, [(True, [True, True, True, True])])
        l0, l1, l2, l3 = [l.id for l in lessons]

        structure.delete_lesson(db, admin_principal, l1)

        assert _lesson_order(db, modules[0].id) == [(l0, 0), (l2, 1), (l3, 2)]

    def test_delete_lesson_recomputes_progress(self, db, member, member_principal, admin_principal):
        course, _, lessons = build_course(db, [(True, [True, True, True])], is_free=True)
        record_completion(db, member_principal, lessons[0].id)
        record_completion(db, member_principal, lessons[1].id)

        structure.delete_lesson(db, admin_principal, lessons[1].id)

        enrollment = db.query(Enrollment).filter(Enrollment.user_id == member.id).one()
        assert enrollment.progress == 50
        assert db.query(LessonCompletion).filter(LessonCompletion.user_id == member.id).count() == 1

    def test_delete_module_cascades(self, db, member, member_principal, admin_principal):
        """Module delete removes its lessons and their completions, survivors stay contiguous"""
        course, modules, lessons = build_course(db, [(True, [True]), (True, [True, True]), (True, [True])], is_free=True)
        record_completion(db, member_principal, lessons[1].id)
        record_completion(db, member_principal, lessons[3].id)

        structure.delete_module(db, admin_principal, modules[1].id)

        assert _module_order(db, course.id) == [(modules[0].id, 0), (modules[2].id, 1)]
        assert db.query(CourseLesson).filter(CourseLesson.module_id == modules[1].id).count() == 0
        assert db.query(LessonCompletion).filter(LessonCompletion.user_id == member.id).count() == 1

        enrollment = db.query(Enrollment).filter(Enrollment.user_id == member.id).one()
        assert enrollment.progress == 50

    def test_delete_unknown(self, db, admin_principal):
        with pytest.raises(NotFound):
            structure.delete_module(db, admin_principal, "missing")

        with pytest.raises(NotFound):
            structure.delete_lesson(db, admin_principal, "missing")

    def test_delete_requires_manage_courses(self, db, member_principal):
        course, modules, _ = build_course(db, [(True, [True])])

        with pytest.raises(Forbidden):
            structure.delete_module(db, member_principal, modules[0].id)

        assert db.query(CourseModule).filter(CourseModule.id == modules[0].id).count() == 1

    def test_delete_course_cascades(self, db, member, member_principal, admin_principal):
        course, _, lessons = build_course(db, [(True, [True])], is_free=True)
        record_completion(db, member_principal, lessons[0].id)

        structure.delete_course(db, admin_principal, course.id)

        assert db.query(Course).count() == 0
        assert db.query(CourseLesson).count() == 0
        assert db.query(Enrollment).count() == 0
        assert db.query(LessonCompletion).count() == 0


class TestUpdate:

    def test_unpublishing_module_recomputes_progress(self, db, member, member_principal, admin_principal):
        course, modules, lessons = build_course(db, [(True, [True]), (True, [True])], is_free=True)
        record_completion(db, member_principal, lessons[0].id)

        structure.update_module(db, admin_principal, modules[1].id, CourseModuleUpdate(is_published=False))

        enrollment = db.query(Enrollment).filter(Enrollment.user_id == member.id).one()
        assert enrollment.progress == 100
        assert enrollment.completed is True

    def test_course_crud(self, db, admin_principal):
        course = structure.create_course(db, admin_principal, CourseCreate(title="  Python 101 ", is_free=True))
        assert course.title == "Python 101"
        assert course.is_published is False

        updated = structure.update_course(db, admin_principal, course.id, CourseUpdate(is_published=True))
        assert updated.is_published is True
        assert updated.is_free is True

    def test_explicit_null_clears_nullable_fields(self, db, admin_principal):
        course = make_course(db, price="49.00")

        updated = structure.update_course(db, admin_principal, course.id, CourseUpdate(price=None, is_free=True))
        assert updated.price is None
        assert updated.is_free is True

        with pytest.raises(InvalidRequest):
            structure.update_course(db, admin_principal, course.id, CourseUpdate(title=None))

        assert db.query(Course).filter(Course.id == course.id).one().title == "Course"

    def test_legacy_admin_may_mutate(self, db):
        legacy = Principal.from_user(make_user(db, level=None, is_admin=True))
        course = make_course(db)

        module = structure.create_module(db, legacy, CourseModuleCreate(course_id=course.id, title="M"))

        assert module.order_index == 0


class TestAtomicRetries:

    def test_stale_write_is_retried(self, tmp_path):
        """A parent changed by another session forces one retry with fresh state"""
        engine = build_engine(f"sqlite:///{tmp_path / 'academy.db'}")
        Base.metadata.create_all(engine)
        Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

        setup = Session()
        course_id = make_course(setup).id
        setup.close()

        first, second = Session(), Session()
        seen_versions = []

        def operation():
            course = first.query(Course).filter(Course.id == course_id).one()
            seen_versions.append(course.version)

            if len(seen_versions) == 1:
                other = second.query(Course).filter(Course.id == course_id).one()
                other.title = "Renamed elsewhere"
                second.commit()

            course.description = "Edited"
            first.flush()
            return course

        try:
            course = run_atomic(first, operation, "edit-course")

            assert seen_versions == [1, 2]
            assert course.title == "Renamed elsewhere"
            assert course.description == "Edited"
            assert course.version == 3
        finally:
            first.close()
            second.close()
            engine.dispose()

    def test_retry_budget_ends_in_conflict(self, db):
        calls = []

        def operation():
            calls.append(1)
            raise StaleDataError("stale")

        with pytest.raises(Conflict):
            run_atomic(db, operation, "always-stale")

        assert len(calls) == settings.CONFLICT_RETRY_ATTEMPTS

    def test_non_unique_integrity_error_is_terminal(self, db):
        calls = []

        def operation():
            calls.append(1)
            raise IntegrityError("UPDATE", {}, Exception("CHECK constraint failed: ck_enrollment_progress_range"))

        with pytest.raises(IntegrityError):
            run_atomic(db, operation, "bad-write")

        assert len(calls) == 1

    def test_duplicate_insert_is_retried(self, db):
        calls = []

        def operation():
            calls.append(1)
            if len(calls) == 1:
                raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: enrollment.user_id"))
            return "done"

        assert run_atomic(db, operation, "insert") == "done"
        assert len(calls) == 2

    def test_check_constraint_failure_is_not_retried(self, db):
        """A negative order index breaks a check constraint and surfaces unchanged"""
        course, modules, lessons = build_course(db, [(True, [True, True])])
        lesson_id = lessons[0].id
        before = _lesson_order(db, modules[0].id)
        calls = []

        def operation():
            calls.append(1)
            lesson = db.query(CourseLesson).filter(CourseLesson.id == lesson_id).one()
            lesson.order_index = -1
            db.flush()

        with pytest.raises(IntegrityError):
            run_atomic(db, operation, "negative-index")

        assert len(calls) == 1
        assert _lesson_order(db, modules[0].id) == before


@pytest.fixture
def file_sessions(tmp_path):
    """Session factory over a file database, so two sessions use two connections."""
    engine = build_engine(f"sqlite:///{tmp_path / 'academy.db'}")
    Base.metadata.create_all(engine)
    try:
        yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    finally:
        engine.dispose()


class TestInterleavedWrites:

    def test_concurrent_completions_of_one_enrollment(self, file_sessions, monkeypatch):
        """A completion committed mid-way through another is counted, not overwritten"""
        setup = file_sessions()
        member = Principal.from_user(make_user(setup))
        course, _, lessons = build_course(setup, [(True, [True, True]), (True, [True, True])], is_free=True)
        course_id = course.id
        lesson_ids = [l.id for l in lessons]
        record_completion(setup, member, lesson_ids[0])
        setup.close()

        first, second = file_sessions(), file_sessions()
        original = progress._ensure_completion
        interleaved = []

        def hooked(db, user_id, lesson_id):
            if db is first and not interleaved:
                interleaved.append(record_completion(second, member, lesson_ids[2]).progress)
            return original(db, user_id, lesson_id)

        monkeypatch.setattr(progress, "_ensure_completion", hooked)

        try:
            enrollment = record_completion(first, member, lesson_ids[1])

            assert interleaved == [50]
            assert enrollment.progress == 75
        finally:
            first.close()
            second.close()

        check = file_sessions()
        try:
            stored = check.query(Enrollment).filter(Enrollment.course_id == course_id).one()
            assert stored.progress == 75
            assert check.query(LessonCompletion).count() == 3
        finally:
            check.close()

    def test_concurrent_reorders_of_one_module(self, file_sessions, monkeypatch):
        """Two reorders of the same module apply one after the other without gaps"""
        setup = file_sessions()
        admin = Principal.from_user(make_user(setup, level="course_admin"))
        course, modules, lessons = build_course(setup, [(True, [True, True, True, True])])
        module_id = modules[0].id
        l0, l1, l2, l3 = [l.id for l in lessons]
        setup.close()

        first, second = file_sessions(), file_sessions()
        original = structure._lesson_siblings
        interleaved = []

        def hooked(db, parent_id):
            if db is first and not interleaved:
                interleaved.append(structure.reorder_lesson(second, admin, l0, 3).id)
            return original(db, parent_id)

        monkeypatch.setattr(structure, "_lesson_siblings", hooked)

        try:
            structure.reorder_lesson(first, admin, l3, 0)
        finally:
            first.close()
            second.close()

        check = file_sessions()
        try:
            assert interleaved == [l0]
            assert _lesson_order(check, module_id) == [(l3, 0), (l1, 1), (l2, 2), (l0, 3)]
        finally:
            check.close()
