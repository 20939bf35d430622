"""Page routes end to end against the fake backend."""

from app.auth_handler import SESSION_EXPIRED

from conftest import QUIZ, SID


REDIRECT_TO_COURSE = '<meta http-equiv="refresh" content="2;url=/course/1">'


# --- authentication ---------------------------------------------------------


def test_protected_pages_without_token_make_no_request(client, backend):
    for url in (
        "/course/1",
        "/course/1/video/11",
        "/course/1/video/11/quiz/5",
        "/course/1/video/11/assignment/9",
        "/course/1/subscribe/invoice",
        "/me/user",
        "/me/user/courses",
        "/me/user/all-exam-results",
        "/me/user/assignments",
    ):
        r = client.get(url)
        assert r.status_code == 200
        assert "Not authenticated" in r.text, url

    assert backend.calls == []


def test_401_clears_session_and_redirects_to_login_once(logged_in, sessions, store, backend):
    backend.on("GET", "/courses", status=401, json={"message": "jwt expired"})

    r = logged_in.get("/", follow_redirects=False)

    assert r.status_code == 303
    assert r.headers["location"] == "/login"
    assert sessions.load(SID) is None
    assert [n.message for n in store.state.ui.notifications] == [SESSION_EXPIRED]

    login = logged_in.get("/login")
    assert login.text.count(SESSION_EXPIRED) == 1
    assert store.state.ui.notifications == ()


def test_home_lists_and_searches_courses(logged_in, backend):
    backend.on(
        "GET",
        "/courses",
        json=[{"id": 1, "title": "Algebra 1"}, {"id": 2, "title": "Chemistry", "price": 120}],
    )

    r = logged_in.get("/", params={"q": "algebra"})

    assert 'href="/course/1"' in r.text
    assert 'href="/course/2"' not in r.text


def test_home_failure_keeps_previous_list(logged_in, backend):
    backend.on("GET", "/courses", json=[{"id": 1, "title": "Algebra 1"}])
    logged_in.get("/")
    backend.on("GET", "/courses", status=500, json={"message": "Database down"})

    r = logged_in.get("/")

    assert "Database down" in r.text
    assert 'href="/course/1"' in r.text


# --- course detail ----------------------------------------------------------


def test_course_links_stay_disabled_until_video_completed(logged_in, course_backend):
    r = logged_in.get("/course/1")

    assert 'aria-disabled="true">Quiz: Intro quiz' in r.text
    assert 'aria-disabled="true">Assignment: Homework 1' in r.text
    assert 'href="/course/1/video/11/quiz/5"' not in r.text

    course_backend.on("GET", "/progress/11", json={"completed": True, "watchedAt": "2026-01-01T10:00:00Z"})
    r = logged_in.get("/course/1")

    assert 'href="/course/1/video/11/quiz/5"' in r.text
    assert 'href="/course/1/video/11/assignment/9"' in r.text


def test_repeated_course_fetch_renders_the_same_lists(logged_in, course_backend, store):
    first = logged_in.get("/course/1").text
    second = logged_in.get("/course/1").text

    assert first.count("data-video-id=") == second.count("data-video-id=") == 2
    assert first.count("Quiz: Intro quiz") == second.count("Quiz: Intro quiz") == 1
    assert len(store.state.quiz.quizzes) == 1
    assert len(store.state.assignment.assignments) == 1


def test_course_shows_total_duration_and_enrollment_card(logged_in, course_backend):
    r = logged_in.get("/course/1")

    assert "Total duration: 25m 00s" in r.text
    assert 'data-enrolled="true"' in r.text
    assert "Go to course" in r.text


def test_not_enrolled_course_points_to_invoice(logged_in, course_backend):
    course_backend.on("POST", "/enroll/api/enrollment-status", json={"enrolled": False})

    r = logged_in.get("/course/1")

    assert 'href="/course/1/subscribe/invoice">Enroll now' in r.text
    assert course_backend.hits("GET", "/quizzes/course/1") == []


def test_course_fetch_failure_is_an_inline_banner(logged_in, backend):
    backend.on("GET", "/courses/1", status=500)
    backend.on("POST", "/enroll/api/enrollment-status", json={"enrolled": True})

    r = logged_in.get("/course/1")

    assert r.status_code == 200
    assert "Failed to fetch course data" in r.text


# --- video ------------------------------------------------------------------


def test_previous_video_incomplete_hides_player(logged_in, course_backend):
    course_backend.on("GET", "/stream/video/12/url", status=403, json={"message": "Watch video 11 first"})

    r = logged_in.get("/course/1/video/12")

    assert "Finish the previous video first." in r.text
    assert "<video" not in r.text and "<iframe" not in r.text


def test_video_page_gates_quiz_on_completion(logged_in, course_backend):
    course_backend.on("GET", "/stream/video/11/url", json={"id": 11, "title": "Intro", "isYoutube": True, "url": "https://www.youtube.com/watch?v=abc"})
    course_backend.on("GET", "/assignments/video/11", json={"assignments": [{"id": 9, "title": "Homework 1", "videoId": 11}]})

    r = logged_in.get("/course/1/video/11")

    assert "youtube.com/embed/abc" in r.text
    assert 'class="mark-complete">' in r.text
    assert '<button class="quiz-link" disabled>' in r.text

    course_backend.on("GET", "/progress/11", json={"completed": True})
    r = logged_in.get("/course/1/video/11")

    assert 'class="mark-complete" disabled' in r.text
    assert 'href="/course/1/video/11/quiz/5"' in r.text


def test_mark_complete_is_optimistic_then_confirmed(logged_in, course_backend, store):
    course_backend.on("POST", "/progress/complete", json={"videoId": 11, "completed": True})

    r = logged_in.post("/course/1/video/11/complete", follow_redirects=False)

    assert r.status_code == 303
    assert store.state.quiz.video_completed[11] is True
    assert store.state.quiz.video_progress[11].completed is True
    assert len(course_backend.hits("POST", "/progress/complete")) == 1


def test_mark_complete_failure_rolls_back(logged_in, course_backend, store):
    course_backend.on("POST", "/progress/complete", status=500)

    logged_in.post("/course/1/video/11/complete", follow_redirects=False)

    assert store.state.quiz.video_completed[11] is False
    assert [n.message for n in store.state.ui.notifications] == ["Failed to mark video as completed"]


# --- enrollment -------------------------------------------------------------


def test_free_course_invoice_joins_and_redirects(logged_in, course_backend):
    course_backend.on("POST", "/enroll/api/enrollment-status", json={"enrolled": False})
    course_backend.on("POST", "/enroll/api/enroll", json={"message": "Enrolled"})

    page = logged_in.get("/course/1/subscribe/invoice")
    assert "Join for free" in page.text

    r = logged_in.post("/course/1/subscribe/invoice")

    assert r.status_code == 200
    assert REDIRECT_TO_COURSE in r.text
    assert "Enrolled successfully" in r.text
    assert len(course_backend.hits("POST", "/enroll/api/enroll")) == 1


def test_paid_course_invoice_label(logged_in, course_backend):
    course_backend.on("GET", "/courses/1", json={"id": 1, "title": "Physics", "price": 150})
    course_backend.on("POST", "/enroll/api/enrollment-status", json={"enrolled": False})

    r = logged_in.get("/course/1/subscribe/invoice")

    assert "Subscribe now" in r.text
    assert "150 EGP" in r.text


def test_already_enrolled_skips_enroll_call(logged_in, course_backend, store):
    r = logged_in.post("/course/1/subscribe/invoice", follow_redirects=False)

    assert r.status_code == 303
    assert r.headers["location"] == "/course/1"
    assert course_backend.hits("POST", "/enroll/api/enroll") == []
    assert [n.type for n in store.state.ui.notifications] == ["info"]


def test_enroll_failure_shows_backend_message(logged_in, course_backend):
    course_backend.on("POST", "/enroll/api/enrollment-status", json={"enrolled": False})
    course_backend.on("POST", "/enroll/api/enroll", status=402, json={"message": "Payment required"})

    r = logged_in.post("/course/1/subscribe/invoice")

    assert "Payment required" in r.text
    assert "http-equiv" not in r.text


# --- quiz -------------------------------------------------------------------


QUIZ_URL = "/course/1/video/11/quiz/5"
ALL_ANSWERED = {"q-1": "1", "q-2": "0", "q-3": "0"}


def _quiz_backend(backend, completed=True):
    backend.on("GET", "/quizzes/5", json=QUIZ)
    backend.on("GET", "/progress/11", json={"completed": completed})
    return backend


def test_quiz_blocks_unanswered_without_network_call(logged_in, backend):
    _quiz_backend(backend)

    r = logged_in.post(QUIZ_URL, data={"q-1": "1"})

    assert "Please answer all questions. (2 remaining)" in r.text
    assert backend.hits("POST", "/quizzes/submit") == []


def test_quiz_status_400_means_already_passed(logged_in, backend):
    _quiz_backend(backend)
    backend.on("POST", "/quizzes/submit", status=400, json={"message": "Quiz already passed"})

    r = logged_in.post(QUIZ_URL, data=ALL_ANSWERED)

    assert "You have already passed this quiz" in r.text
    assert "Quiz already passed" not in r.text


def test_quiz_other_errors_show_backend_message(logged_in, backend):
    _quiz_backend(backend)
    backend.on("POST", "/quizzes/submit", status=500, json={"message": "Grader offline"})

    r = logged_in.post(QUIZ_URL, data=ALL_ANSWERED)

    assert "Grader offline" in r.text


def test_quiz_success_shows_results_dialog(logged_in, backend, store):
    _quiz_backend(backend)
    backend.on(
        "POST",
        "/quizzes/submit",
        json={"score": 100, "passed": True, "correctAnswers": 3, "totalQuestions": 3},
    )

    r = logged_in.post(QUIZ_URL, data=ALL_ANSWERED)

    assert "Congratulations, you passed!" in r.text
    assert 'href="/me/user/exam-results?quizId=5"' in r.text
    assert store.state.quiz.quiz_statuses[5].passed is True


def test_quiz_locked_until_video_completed(logged_in, backend):
    _quiz_backend(backend, completed=False)

    page = logged_in.get(QUIZ_URL)
    assert "Complete the video first to unlock this." in page.text

    r = logged_in.post(QUIZ_URL, data=ALL_ANSWERED)
    assert backend.hits("POST", "/quizzes/submit") == []


# --- assignment -------------------------------------------------------------


ASSIGNMENT_URL = "/course/1/video/11/assignment/9"


def _assignment_backend(backend, **assignment):
    backend.on("GET", "/assignments/9", json={"id": 9, "title": "Homework 1", "videoId": 11, **assignment})
    backend.on("GET", "/assignments/9/status", json={"submitted": False, "status": "NOT_SUBMITTED"})
    backend.on("GET", "/progress/11", json={"completed": True})
    return backend


def test_free_form_assignment_needs_content(logged_in, backend):
    _assignment_backend(backend)

    r = logged_in.post(ASSIGNMENT_URL, data={"content": "  "})

    assert "Please enter content or a file link for the assignment" in r.text
    assert backend.hits("POST", "/assignments/submit") == []


def test_assignment_status_400_means_already_submitted(logged_in, backend):
    _assignment_backend(backend)
    backend.on("POST", "/assignments/submit", status=400, json={"message": "Duplicate"})

    r = logged_in.post(ASSIGNMENT_URL, data={"content": "My answer"})

    assert "You have already submitted this assignment" in r.text


def test_mcq_assignment_counts_unanswered(logged_in, backend):
    _assignment_backend(
        backend,
        isMCQ=True,
        AssignmentQuestion=[
            {"id": 1, "text": "a?", "options": ["x", "y"]},
            {"id": 2, "text": "b?", "options": ["x", "y"]},
        ],
    )

    r = logged_in.post(ASSIGNMENT_URL, data={"q-1": "0"})

    assert "Please answer all questions. (1 remaining)" in r.text
    assert backend.hits("POST", "/assignments/submit") == []


def test_assignment_submit_success(logged_in, backend):
    _assignment_backend(backend)
    backend.on("POST", "/assignments/submit", json={"status": "PENDING", "message": "Submitted"})

    r = logged_in.post(ASSIGNMENT_URL, data={"content": "My answer"})

    assert "Your assignment was submitted" in r.text
    assert "waiting to be graded" in r.text


def test_past_due_assignment_warns(logged_in, backend):
    _assignment_backend(backend, dueDate="2020-01-01T00:00:00Z")

    r = logged_in.get(ASSIGNMENT_URL)

    assert "The due date for this assignment has passed." in r.text
