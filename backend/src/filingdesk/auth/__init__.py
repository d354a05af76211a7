"""Bearer-token authentication and role checks for the HTTP layer"""
