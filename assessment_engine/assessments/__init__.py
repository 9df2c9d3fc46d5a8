"""
Assessments

- base: assessment models, student answers and the store interfaces
- delivery: the session engine and its HTTP endpoints
- providers: store implementations backed by the assessment service
"""
