"""Create posts table with row-level security policies.

Revision ID: create_posts_table
Revises:
Create Date: 2025-01-15 09:00:00.000000

"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "create_posts_table"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "posts",
        sa.Column("id", sa.String(36), nullable=False, server_default=sa.text("gen_random_uuid()::text")),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_id", sa.String(36), nullable=False),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.CheckConstraint("char_length(btrim(title)) BETWEEN 1 AND 200", name="ck_posts_title_length"),
        sa.CheckConstraint("char_length(btrim(content)) >= 1", name="ck_posts_content_not_blank"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_posts_id"), "posts", ["id"], unique=False)
    op.create_index(op.f("ix_posts_author_id"), "posts", ["author_id"], unique=False)
    op.create_index("ix_posts_published_created_at", "posts", ["published", "created_at"], unique=False)

    # updated_at moves on every write, created_at is pinned
    op.execute(
        """
    CREATE OR REPLACE FUNCTION set_posts_updated_at()
    RETURNS TRIGGER AS $$
    BEGIN
        NEW.updated_at = CURRENT_TIMESTAMP;
        NEW.created_at = OLD.created_at;
        NEW.author_id = OLD.author_id;
        RETURN NEW;
    END;
    $$ LANGUAGE plpgsql;
    """
    )
    op.execute(
        """
    CREATE TRIGGER posts_set_updated_at
    BEFORE UPDATE ON posts
    FOR EACH ROW
    EXECUTE FUNCTION set_posts_updated_at();
    """
    )

    # Row-level security, only where Supabase's auth schema is present
    op.execute(
        """
    DO $$
    BEGIN
        IF to_regprocedure('auth.uid()') IS NOT NULL THEN
            ALTER TABLE posts ENABLE ROW LEVEL SECURITY;

            CREATE POLICY posts_select_visible ON posts
                FOR SELECT
                USING (published OR auth.uid()::text = author_id);

            CREATE POLICY posts_insert_own ON posts
                FOR INSERT
                WITH CHECK (auth.uid()::text = author_id);

            CREATE POLICY posts_update_own ON posts
                FOR UPDATE
                USING (auth.uid()::text = author_id)
                WITH CHECK (auth.uid()::text = author_id);

            CREATE POLICY posts_delete_own ON posts
                FOR DELETE
                USING (auth.uid()::text = author_id);
        END IF;
    END
    $$;
    """
    )


def downgrade():
    op.execute("DROP TRIGGER IF EXISTS posts_set_updated_at ON posts")
    op.execute("DROP FUNCTION IF EXISTS set_posts_updated_at()")
    op.drop_index("ix_posts_published_created_at", table_name="posts")
    op.drop_index(op.f("ix_posts_author_id"), table_name="posts")
    op.drop_index(op.f("ix_posts_id"), table_name="posts")
    op.drop_table("posts")
