"""Descriptive fields attached to each scored entity: what an instructor
teaches and has taught, which terms and instructors a course has seen."""

from etl.confidence import ScoringContext


def _course_ref(subject: str, number: str) -> dict:
    return {"subject": subject, "number": number}


def _sorted_courses(pairs) -> list[dict]:
    return [_course_ref(s, n) for s, n in sorted(set(pairs))]


def historical_courses_of(store, instructor: str) -> list[dict]:
    return _sorted_courses((r.subject, r.number) for r in store.find({"instructor": instructor}))


def current_courses_of(catalog, instructor: str, context: ScoringContext) -> list[dict]:
    offerings = catalog.find({"instructors": instructor, "term_number": context.term_number})
    return _sorted_courses((o.subject, o.number) for o in offerings)


def instructor_extras(store, catalog, context: ScoringContext) -> dict[str, dict]:
    instructors = sorted({r.instructor for r in store.all()})
    return {
        name: {
            "instructor": name,
            "historicalCourses": historical_courses_of(store, name),
            "courses": current_courses_of(catalog, name, context),
        }
        for name in instructors
    }


def course_terms_of(store, catalog, subject: str, number: str) -> list[int]:
    selector = {"subject": subject, "number": number}
    terms = {r.term_number for r in store.find(selector)}
    terms.update(o.term_number for o in catalog.find(selector))
    return sorted(terms)


def historical_instructors_of(store, subject: str, number: str) -> list[str]:
    return sorted({r.instructor for r in store.find({"subject": subject, "number": number})})


def course_extras(store, catalog, context: ScoringContext) -> dict[str, dict]:
    courses = sorted({(r.subject, r.number) for r in store.all()})
    return {
        f"{subject} {number}": {
            "subject": subject,
            "number": number,
            "terms": course_terms_of(store, catalog, subject, number),
            "instructors": catalog.roster(subject, number, context.term_number),
            "historicalInstructors": historical_instructors_of(store, subject, number),
        }
        for subject, number in courses
    }


def extras_for(kind_name: str, store, catalog, context: ScoringContext) -> dict[str, dict]:
    if kind_name == "instructor":
        return instructor_extras(store, catalog, context)
    if kind_name == "course":
        return course_extras(store, catalog, context)
    raise ValueError(f"Unknown entity kind: {kind_name!r}")
