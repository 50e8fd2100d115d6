"""
Canvas CMS Utilities Package.

- auth: login_required decorator and session token validation
- permissions: role hierarchy checks and entity edit access
- audit: audit log helpers
- language: request language negotiation
"""
