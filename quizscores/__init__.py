"""
Quiz score service.

This package provides a FastAPI application that persists quiz results in
one of several interchangeable stores (SQL, Firestore, S3 or a local JSON
file), tracks which users already completed the quiz and pushes new results
to live observers.
"""
