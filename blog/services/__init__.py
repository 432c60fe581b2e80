# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and MongoDB access for a single domain aggregate:
#
#   article_service  — CRUD + slug derivation for Article
#   user_service     — CRUD + password hashing/verification for User
#
# All service functions accept a MongoProvider as their first argument and
# acquire their own handle from it for the duration of the call.
