from dao_assessment.api.app import create_app, rejection_response, request_rejection

__all__ = ["create_app", "rejection_response", "request_rejection"]
