"""String error keys returned as ``detail``.

Clients translate these into localized alerts, so they are part of the API.
"""

NOT_AUTHENTICATED = "not-authenticated"
PARENT_REQUIRED = "parent-required"
INVALID_FAMILY_CODE = "invalid-family-code"
REQUEST_NOT_FOUND = "request-not-found"
REQUEST_NOT_PENDING = "request-not-pending"
FAMILY_GROUP_NOT_FOUND = "family-group-not-found"
NOT_FAMILY_OWNER = "not-family-owner"
INVITE_CODE_EXHAUSTED = "invite-code-exhausted"
CHILD_NOT_FOUND = "child-not-found"
PARENT_PROFILE_NOT_FOUND = "parent-profile-not-found"
EMAIL_ALREADY_REGISTERED = "email-already-registered"
INVALID_CREDENTIALS = "invalid-credentials"
INVALID_REFRESH_TOKEN = "invalid-refresh-token"
