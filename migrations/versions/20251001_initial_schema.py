"""initial admissions portal schema"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "portal_20251001"
down_revision = None
branch_labels = None
depends_on = None


APPLICATION_STATUSES = (
    "draft",
    "submitted",
    "under_review",
    "approved",
    "rejected",
    "cancelled",
    "frozen",
)
GENDERS = ("Male", "Female", "Other")
RESERVATION_CATEGORIES = (
    "OC", "BC-A", "BC-B", "BC-C", "BC-D", "BC-E", "SC", "ST", "EWS", "PH",
)
PROGRAM_TYPES = ("UG", "PG", "Diploma", "Certificate")
NOTIFICATION_TYPES = ("info", "success", "warning", "danger")


def _timestamps(updated=True):
    columns = [sa.Column("date_created", sa.DateTime(), nullable=False, server_default=sa.func.now())]
    if updated:
        columns.append(
            sa.Column("date_updated", sa.DateTime(), nullable=False, server_default=sa.func.now())
        )
    return columns


def upgrade():
    status_enum = sa.Enum(*APPLICATION_STATUSES, name="application_status_enum")
    # Second use of the same type must not issue CREATE TYPE again on PostgreSQL.
    history_status_enum = sa.Enum(*APPLICATION_STATUSES, name="application_status_enum").with_variant(
        postgresql.ENUM(*APPLICATION_STATUSES, name="application_status_enum", create_type=False),
        "postgresql",
    )
    gender_enum = sa.Enum(*GENDERS, name="gender_enum")
    reservation_enum = sa.Enum(*RESERVATION_CATEGORIES, name="reservation_category_enum")
    program_type_enum = sa.Enum(*PROGRAM_TYPES, name="program_type_enum")
    notification_type_enum = sa.Enum(*NOTIFICATION_TYPES, name="notification_type_enum")

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="student"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("program_id", sa.Integer(), nullable=True),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        sa.Column("login_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("locked_until", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_program_id", "users", ["program_id"])

    op.create_table(
        "programs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("program_code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("program_name", sa.String(length=255), nullable=False),
        sa.Column("program_type", program_type_enum, nullable=False),
        sa.Column("department", sa.String(length=255), nullable=False),
        sa.Column("duration_years", sa.Integer(), nullable=False),
        sa.Column("total_seats", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("application_start_date", sa.Date(), nullable=True),
        sa.Column("application_end_date", sa.Date(), nullable=True),
        sa.Column("program_admin_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("eligibility_criteria", sa.Text(), nullable=True),
        sa.Column("fees_structure", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_programs_program_admin_id", "programs", ["program_admin_id"])
    op.create_index("ix_programs_is_active", "programs", ["is_active"])
    op.create_foreign_key("fk_users_program_id", "users", "programs", ["program_id"], ["id"])

    op.create_table(
        "certificate_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("file_types_allowed", sa.String(length=255), nullable=False, server_default="pdf,jpg,jpeg,png"),
        sa.Column("max_file_size_mb", sa.Float(), nullable=False, server_default="5"),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_certificate_types_is_active", "certificate_types", ["is_active"])

    op.create_table(
        "program_certificate_requirements",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("program_id", sa.Integer(), sa.ForeignKey("programs.id"), nullable=False),
        sa.Column("certificate_type_id", sa.Integer(), sa.ForeignKey("certificate_types.id"), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("special_instructions", sa.Text(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("program_id", "certificate_type_id", name="uq_program_certificate_requirement"),
    )
    op.create_index("ix_program_certificate_requirements_program_id", "program_certificate_requirements", ["program_id"])
    op.create_index(
        "ix_program_certificate_requirements_certificate_type_id",
        "program_certificate_requirements",
        ["certificate_type_id"],
    )

    op.create_table(
        "file_uploads",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("uuid", sa.String(length=36), nullable=False, unique=True),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=False),
        sa.Column("file_path", sa.String(length=512), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("mime_type", sa.String(length=128), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("uploaded_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("upload_date", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("verified_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_file_uploads_uuid", "file_uploads", ["uuid"])
    op.create_index("ix_file_uploads_uploaded_by", "file_uploads", ["uploaded_by"])

    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("application_number", sa.String(length=32), nullable=False, unique=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("program_id", sa.Integer(), sa.ForeignKey("programs.id"), nullable=False),
        sa.Column("academic_year", sa.String(length=16), nullable=False),
        sa.Column("status", status_enum, nullable=False, server_default="draft"),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("reviewed_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("approval_comments", sa.Text(), nullable=True),
        sa.Column("student_name", sa.String(length=255), nullable=False),
        sa.Column("father_name", sa.String(length=255), nullable=False),
        sa.Column("mother_name", sa.String(length=255), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("gender", gender_enum, nullable=False),
        sa.Column("aadhar_number", sa.String(length=32), nullable=True),
        sa.Column("mobile_number", sa.String(length=32), nullable=False),
        sa.Column("parent_mobile", sa.String(length=32), nullable=True),
        sa.Column("guardian_mobile", sa.String(length=32), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("religion", sa.String(length=64), nullable=True),
        sa.Column("caste", sa.String(length=64), nullable=True),
        sa.Column("reservation_category", reservation_enum, nullable=False, server_default="OC"),
        sa.Column("is_physically_handicapped", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sadaram_number", sa.String(length=64), nullable=True),
        sa.Column("special_reservation", sa.String(length=255), nullable=True),
        sa.Column("ration_card_number", sa.String(length=64), nullable=True),
        sa.Column("present_address", sa.JSON(), nullable=False),
        sa.Column("permanent_address", sa.JSON(), nullable=False),
        sa.Column("identification_marks", sa.JSON(), nullable=False),
        sa.Column("meeseva_details", sa.JSON(), nullable=False),
        sa.Column("education", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_applications_user_id", "applications", ["user_id"])
    op.create_index("ix_applications_program_id", "applications", ["program_id"])
    op.create_index("ix_applications_academic_year", "applications", ["academic_year"])
    op.create_index("ix_applications_status", "applications", ["status"])
    op.create_index("ix_applications_user_program", "applications", ["user_id", "program_id"])
    op.create_index("ix_applications_program_status", "applications", ["program_id", "status"])

    op.create_table(
        "application_status_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("application_id", sa.Integer(), nullable=False),
        sa.Column("from_status", history_status_enum, nullable=True),
        sa.Column("to_status", history_status_enum, nullable=False),
        sa.Column("changed_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_application_status_history_application_id", "application_status_history", ["application_id"])
    op.create_index("ix_status_history_transition", "application_status_history", ["from_status", "to_status"])

    op.create_table(
        "application_documents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("application_id", sa.Integer(), sa.ForeignKey("applications.id"), nullable=False),
        sa.Column("certificate_type_id", sa.Integer(), sa.ForeignKey("certificate_types.id"), nullable=False),
        sa.Column("file_upload_id", sa.Integer(), sa.ForeignKey("file_uploads.id"), nullable=False),
        sa.Column("document_name", sa.String(length=255), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("verified_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
        sa.Column("verification_remarks", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("application_id", "certificate_type_id", name="uq_application_document_type"),
    )
    op.create_index("ix_application_documents_application_id", "application_documents", ["application_id"])
    op.create_index("ix_application_documents_verified", "application_documents", ["application_id", "is_verified"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", notification_type_enum, nullable=False, server_default="info"),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("action_url", sa.String(length=512), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_notifications_type", "notifications", ["type"])
    op.create_index("ix_notifications_user_read", "notifications", ["user_id", "is_read"])


def downgrade():
    op.drop_table("notifications")
    op.drop_table("application_documents")
    op.drop_table("application_status_history")
    op.drop_table("applications")
    op.drop_table("file_uploads")
    op.drop_table("program_certificate_requirements")
    op.drop_table("certificate_types")
    op.drop_constraint("fk_users_program_id", "users", type_="foreignkey")
    op.drop_table("programs")
    op.drop_table("users")

    bind = op.get_bind()
    for name in (
        "notification_type_enum",
        "program_type_enum",
        "reservation_category_enum",
        "gender_enum",
        "application_status_enum",
    ):
        sa.Enum(name=name).drop(bind, checkfirst=True)
