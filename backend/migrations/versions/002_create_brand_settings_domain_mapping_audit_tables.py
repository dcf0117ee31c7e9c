"""Create brand_settings, domain_mapping and audit_log tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 11:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'brand_settings',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('theme_color', sa.Text(), nullable=True),
        sa.Column('logo_url', sa.Text(), nullable=True),
        sa.Column('banner_images', postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('custom_css', sa.Text(), nullable=True),
        sa.Column('subdomain', sa.Text(), nullable=True),
        sa.Column('custom_domain', sa.Text(), nullable=True),
        sa.Column('enable_ssl', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('plan', sa.Text(), server_default='foundation', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['business_id'], ['business.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('business_id', name='uq_brand_settings_business'),
        sa.CheckConstraint("plan IN ('foundation', 'growth', 'premium', 'enterprise')", name='ck_brand_settings_plan'),
    )
    # Tenant resolution lookups; lower-cased on write
    op.create_index('ix_brand_settings_subdomain', 'brand_settings', ['subdomain'], unique=True)
    op.create_index('ix_brand_settings_custom_domain', 'brand_settings', ['custom_domain'], unique=True)
    op.execute("""
        CREATE TRIGGER update_brand_settings_updated_at
        BEFORE UPDATE ON brand_settings
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """)

    op.create_table(
        'domain_mapping',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('domain', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), server_default='pending_verification', nullable=False),
        sa.Column('certificate_type', sa.Text(), server_default='letsencrypt', nullable=False),
        sa.Column('force_https', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('auto_renewal', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('is_verified', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('verification_method', sa.Text(), server_default='dns', nullable=False),
        sa.Column('verification_token', sa.Text(), nullable=True),
        sa.Column('verified_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('verified_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('ssl_enabled', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('cname_target', sa.Text(), nullable=False),
        sa.Column('dns_records', postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('dns_status', sa.Text(), server_default='unknown', nullable=False),
        sa.Column('last_checked_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['business_id'], ['business.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['verified_by'], ['user.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by'], ['user.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('domain', name='uq_domain_mapping_domain'),
        sa.CheckConstraint(
            "status IN ('pending_verification', 'active', 'error', 'deleting')",
            name='ck_domain_mapping_status'
        ),
        sa.CheckConstraint("certificate_type IN ('letsencrypt', 'custom')", name='ck_domain_mapping_certificate_type'),
        sa.CheckConstraint(
            "verification_method IN ('dns', 'file', 'email')",
            name='ck_domain_mapping_verification_method'
        ),
    )
    op.create_index('ix_domain_mapping_business_id', 'domain_mapping', ['business_id'])
    op.create_index(
        'ix_domain_mapping_lookup', 'domain_mapping',
        ['domain', 'is_active', 'is_verified', 'status']
    )
    op.execute("""
        CREATE TRIGGER update_domain_mapping_updated_at
        BEFORE UPDATE ON domain_mapping
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """)

    op.create_table(
        'audit_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('entity_type', sa.Text(), nullable=True),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('metadata_json', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('ip_address', sa.Text(), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['business_id'], ['business.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['actor_id'], ['user.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_audit_log_business_id', 'audit_log', ['business_id'])
    op.create_index('ix_audit_log_business_id_created_at', 'audit_log', ['business_id', sa.text('created_at DESC')])
    op.create_index('idx_audit_action', 'audit_log', ['action', sa.text('created_at DESC')])


def downgrade():
    op.drop_index('idx_audit_action', table_name='audit_log')
    op.drop_index('ix_audit_log_business_id_created_at', table_name='audit_log')
    op.drop_index('ix_audit_log_business_id', table_name='audit_log')
    op.drop_table('audit_log')

    op.execute('DROP TRIGGER IF EXISTS update_domain_mapping_updated_at ON domain_mapping')
    op.drop_index('ix_domain_mapping_lookup', table_name='domain_mapping')
    op.drop_index('ix_domain_mapping_business_id', table_name='domain_mapping')
    op.drop_table('domain_mapping')

    op.execute('DROP TRIGGER IF EXISTS update_brand_settings_updated_at ON brand_settings')
    op.drop_index('ix_brand_settings_custom_domain', table_name='brand_settings')
    op.drop_index('ix_brand_settings_subdomain', table_name='brand_settings')
    op.drop_table('brand_settings')
