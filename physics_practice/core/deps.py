from physics_practice.db.session import SessionLocal


# every request that needs DB gets its own session, and it always closes
# (closing an uncommitted session rolls it back).
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
