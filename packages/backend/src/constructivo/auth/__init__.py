"""Authentication and authorization.

Learn: Admins sign in with Google. The OAuth callback upserts the user
row and issues a JWT access token, stored in an httpOnly cookie for the
browser (a Bearer header works too, for the CLI). Every protected route
resolves the token back to a User row, so admin changes apply on the
next request.
"""
