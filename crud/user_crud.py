from sqlalchemy import or_
from sqlalchemy.orm import Session
from models.password import Password
from models.user import User


def get_user(db: Session, user_id: str):
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(User.email == email).first()


def get_user_by_username(db: Session, username: str):
    return db.query(User).filter(User.username == username).first()


def get_user_by_username_or_email(db: Session, value: str):
    return db.query(User).filter(or_(User.username == value, User.email == value)).first()


def get_password(db: Session, user_id: str):
    return db.query(Password).filter(Password.user_id == user_id).first()


def set_password(db: Session, user_id: str, password_hash: str):
    pw = get_password(db, user_id)
    if pw is None:
        pw = Password(user_id=user_id, hash=password_hash)
        db.add(pw)
    else:
        pw.hash = password_hash
    db.commit()
    return pw
