"""survey_server — FastAPI REST server for the survey engine.

Hosts one ``SurveyEngine`` per (user, session) and exposes the
renderer-facing contract over HTTP, so any UI can drive a survey.
"""
