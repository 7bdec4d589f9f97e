"""
User models: User
"""
from app import db
from app.models.base import _utc_now_naive, _isoformat


class User(db.Model):
    """Accounts that can sign in to the admin API"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(10), nullable=False, default='user')  # user, admin
    is_active = db.Column(db.Boolean, default=True)

    created_at = db.Column(db.DateTime, default=_utc_now_naive)
    last_login = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.Index('idx_user_role', 'role', 'is_active'),
    )

    def __repr__(self):
        return f'<User {self.email}>'

    @property
    def is_admin(self):
        return self.role == 'admin'

    def set_password(self, password):
        """Hash and set the password"""
        from werkzeug.security import generate_password_hash
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Verify password against hash"""
        from werkzeug.security import check_password_hash
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'role': self.role,
            'is_active': self.is_active,
            'created_at': _isoformat(self.created_at),
        }
