"""
Issue Tracking Models

Deduplicated issues keyed by fingerprint, the raw per-occurrence event log,
and the notification outbox written alongside them.
"""
from app import db
from app.models.base import _utc_now_naive, _isoformat, _load_json


class Issue(db.Model):
    """One row per unique error fingerprint"""
    __tablename__ = 'issues'

    id = db.Column(db.Integer, primary_key=True)

    # Identification
    fingerprint = db.Column(db.String(64), nullable=False, unique=True)
    level = db.Column(db.String(10), nullable=False, default='error')
    status = db.Column(db.String(10), nullable=False, default='open')

    # First-observed content (never overwritten on recurrence)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    stack = db.Column(db.Text)

    # First-observed context
    url = db.Column(db.String(500))
    user_agent = db.Column(db.String(500))
    environment = db.Column(db.String(20), default='production')
    user_id = db.Column(db.String(64), nullable=True, index=True)

    tags = db.Column(db.Text)  # JSON list
    metadata_json = db.Column('metadata', db.Text)  # JSON object

    # Occurrence tracking
    occurrence_count = db.Column(db.Integer, nullable=False, default=1)
    first_seen_at = db.Column(db.DateTime, nullable=False, default=_utc_now_naive)
    last_seen_at = db.Column(db.DateTime, nullable=False, default=_utc_now_naive)

    # Resolution
    resolved_by = db.Column(db.String(64))
    resolved_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=_utc_now_naive)
    updated_at = db.Column(db.DateTime, default=_utc_now_naive)

    events = db.relationship('IssueEvent', backref='issue', lazy='dynamic',
                             cascade='all, delete-orphan')

    __table_args__ = (
        db.Index('idx_issue_last_seen', 'last_seen_at', 'id'),
        db.Index('idx_issue_status_level', 'status', 'level'),
    )

    @property
    def tag_list(self):
        return _load_json(self.tags, [])

    @property
    def metadata_dict(self):
        return _load_json(self.metadata_json, {})

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'fingerprint': self.fingerprint,
            'level': self.level,
            'status': self.status,
            'title': self.title,
            'message': self.message,
            'stack': self.stack,
            'url': self.url,
            'user_agent': self.user_agent,
            'environment': self.environment,
            'user_id': self.user_id,
            'tags': self.tag_list,
            'metadata': self.metadata_dict,
            'occurrence_count': self.occurrence_count,
            'first_seen_at': _isoformat(self.first_seen_at),
            'last_seen_at': _isoformat(self.last_seen_at),
            'resolved_by': self.resolved_by,
            'resolved_at': _isoformat(self.resolved_at),
        }

    def __repr__(self):
        return f'<Issue {self.id}: {self.title}>'


class IssueEvent(db.Model):
    """Immutable record of a single logged occurrence"""
    __tablename__ = 'issue_events'

    id = db.Column(db.Integer, primary_key=True)
    issue_id = db.Column(db.Integer, db.ForeignKey('issues.id', ondelete='CASCADE'),
                         nullable=False, index=True)
    fingerprint = db.Column(db.String(64), nullable=False, index=True)
    level = db.Column(db.String(10), nullable=False)
    message = db.Column(db.Text)
    url = db.Column(db.String(500))
    user_id = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(500))
    metadata_json = db.Column('metadata', db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=_utc_now_naive, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'issue_id': self.issue_id,
            'level': self.level,
            'message': self.message,
            'url': self.url,
            'user_id': self.user_id,
            'user_agent': self.user_agent,
            'metadata': _load_json(self.metadata_json, {}),
            'created_at': _isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<IssueEvent {self.id} issue={self.issue_id}>'


class IssueNotification(db.Model):
    """Outbox row for a new or reopened issue awaiting delivery"""
    __tablename__ = 'issue_notifications'

    id = db.Column(db.Integer, primary_key=True)
    issue_id = db.Column(db.Integer, db.ForeignKey('issues.id', ondelete='CASCADE'),
                         nullable=False, index=True)
    kind = db.Column(db.String(20), nullable=False)  # new_issue, reopened
    level = db.Column(db.String(10), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text)

    status = db.Column(db.String(10), nullable=False, default='pending', index=True)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    last_error = db.Column(db.Text)

    created_at = db.Column(db.DateTime, nullable=False, default=_utc_now_naive)
    delivered_at = db.Column(db.DateTime)

    issue = db.relationship('Issue')

    def to_dict(self):
        return {
            'id': self.id,
            'issue_id': self.issue_id,
            'kind': self.kind,
            'level': self.level,
            'title': self.title,
            'status': self.status,
            'attempts': self.attempts,
            'last_error': self.last_error,
            'created_at': _isoformat(self.created_at),
            'delivered_at': _isoformat(self.delivered_at),
        }

    def __repr__(self):
        return f'<IssueNotification {self.id}: {self.kind} {self.status}>'
