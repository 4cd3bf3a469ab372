from sqlalchemy.orm import Session

from pos.db.models.role import Role as RoleModel


def get_all_roles(db: Session) -> list[RoleModel]:
    return db.query(RoleModel).all()


def get_role_by_name(db: Session, name: str) -> RoleModel | None:
    return db.query(RoleModel).filter(RoleModel.name == name).first()
