"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-01-12

Esteira de projetos, terrenos, financeiro, documentos, plano de mídia e
identidade visual.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


base_cobranca = postgresql.ENUM('mensal', 'bimestral', 'trimestral', 'semestral', name='basecobranca', create_type=False)
tipo_cobranca = postgresql.ENUM('pre-pago', 'pos-pago', name='tipocobranca', create_type=False)
forma_pagamento = postgresql.ENUM('transferencia', 'cheque', 'dinheiro', 'cartao', 'pix', name='formapagamento', create_type=False)


def upgrade() -> None:
    # Tipos compartilhados entre tabelas do financeiro
    bind = op.get_bind()
    for enum_type in (base_cobranca, tipo_cobranca, forma_pagamento):
        enum_type.create(bind, checkfirst=True)

    op.create_table('companies',
        sa.Column('id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.Column('razao_social', sa.String(length=200), nullable=False),
        sa.Column('nome_comercial', sa.String(length=200), nullable=False),
        sa.Column('cnpj', sa.String(length=14), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('responsavel_legal', sa.String(length=200), nullable=True),
        sa.Column('logo_url', sa.String(length=500), nullable=True),
        sa.Column('cep', sa.String(length=9), nullable=True),
        sa.Column('logradouro', sa.String(length=200), nullable=True),
        sa.Column('numero', sa.String(length=20), nullable=True),
        sa.Column('complemento', sa.String(length=100), nullable=True),
        sa.Column('bairro', sa.String(length=100), nullable=True),
        sa.Column('cidade', sa.String(length=100), nullable=True),
        sa.Column('estado', sa.String(length=2), nullable=True),
        sa.Column('status', sa.Enum('active', 'inactive', name='companystatus'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_companies_id'), 'companies', ['id'], unique=False)
    op.create_index(op.f('ix_companies_razao_social'), 'companies', ['razao_social'], unique=False)
    op.create_index(op.f('ix_companies_cnpj'), 'companies', ['cnpj'], unique=True)

    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('status', sa.Enum('active', 'inactive', name='userstatus'), nullable=False),
        sa.Column('must_change_password', sa.Boolean(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=True),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_company_id'), 'users', ['company_id'], unique=False)

    op.create_table('user_roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.Enum('lev_admin', 'lev_user', 'company_admin', 'company_user', name='approle'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'role', name='uq_user_roles_user_role')
    )
    op.create_index(op.f('ix_user_roles_id'), 'user_roles', ['id'], unique=False)
    op.create_index(op.f('ix_user_roles_user_id'), 'user_roles', ['user_id'], unique=False)

    op.create_table('projects',
        sa.Column('id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.Column('company_id', sa.Integer(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=300), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('area', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('viability', 'project', 'approvals', 'sales', 'delivery', name='projectstatus'), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('progress', sa.Integer(), nullable=False),
        sa.Column('archived', sa.Boolean(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_projects_id'), 'projects', ['id'], unique=False)
    op.create_index(op.f('ix_projects_company_id'), 'projects', ['company_id'], unique=False)
    op.create_index(op.f('ix_projects_name'), 'projects', ['name'], unique=False)
    op.create_index(op.f('ix_projects_status'), 'projects', ['status'], unique=False)

    op.create_table('project_profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index(op.f('ix_project_profiles_id'), 'project_profiles', ['id'], unique=False)

    op.create_table('project_members',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('profile_id', sa.Integer(), nullable=True),
        sa.Column('custom_permissions', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['profile_id'], ['project_profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('project_id', 'user_id', name='uq_project_members_project_user')
    )
    op.create_index(op.f('ix_project_members_id'), 'project_members', ['id'], unique=False)
    op.create_index(op.f('ix_project_members_project_id'), 'project_members', ['project_id'], unique=False)
    op.create_index(op.f('ix_project_members_user_id'), 'project_members', ['user_id'], unique=False)

    op.create_table('terrenos',
        sa.Column('id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('nome', sa.String(length=200), nullable=False),
        sa.Column('area', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('matricula', sa.String(length=100), nullable=True),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('available', 'negotiating', 'acquired', name='terrenostatus'), nullable=False),
        sa.Column('cep', sa.String(length=9), nullable=True),
        sa.Column('logradouro', sa.String(length=200), nullable=True),
        sa.Column('numero', sa.String(length=20), nullable=True),
        sa.Column('complemento', sa.String(length=100), nullable=True),
        sa.Column('bairro', sa.String(length=100), nullable=True),
        sa.Column('cidade', sa.String(length=100), nullable=True),
        sa.Column('estado', sa.String(length=2), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_terrenos_id'), 'terrenos', ['id'], unique=False)
    op.create_index(op.f('ix_terrenos_company_id'), 'terrenos', ['company_id'], unique=False)
    op.create_index(op.f('ix_terrenos_nome'), 'terrenos', ['nome'], unique=False)
    op.create_index(op.f('ix_terrenos_status'), 'terrenos', ['status'], unique=False)

    # Financeiro
    op.create_table('contas_receber_lotes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('base_cobranca', base_cobranca, nullable=False),
        sa.Column('valor_cobranca', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('tipo_cobranca', tipo_cobranca, nullable=False),
        sa.Column('data_inicio', sa.Date(), nullable=False),
        sa.Column('data_fim', sa.Date(), nullable=False),
        sa.Column('dia_pagamento', sa.Integer(), nullable=False),
        sa.Column('dia_emissao_nota', sa.Integer(), nullable=False),
        sa.Column('contato_nome', sa.String(length=200), nullable=True),
        sa.Column('contato_email', sa.String(length=255), nullable=True),
        sa.Column('contato_telefone', sa.String(length=20), nullable=True),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('total_registros', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_contas_receber_lotes_id'), 'contas_receber_lotes', ['id'], unique=False)
    op.create_index(op.f('ix_contas_receber_lotes_company_id'), 'contas_receber_lotes', ['company_id'], unique=False)
    op.create_index(op.f('ix_contas_receber_lotes_project_id'), 'contas_receber_lotes', ['project_id'], unique=False)

    op.create_table('contas_receber',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('lote_id', sa.Integer(), nullable=True),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('base_cobranca', base_cobranca, nullable=False),
        sa.Column('valor_cobranca', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('tipo_cobranca', tipo_cobranca, nullable=False),
        sa.Column('data_cobranca', sa.Date(), nullable=False),
        sa.Column('dia_pagamento', sa.Integer(), nullable=False),
        sa.Column('dia_emissao_nota', sa.Integer(), nullable=False),
        sa.Column('contato_nome', sa.String(length=200), nullable=True),
        sa.Column('contato_email', sa.String(length=255), nullable=True),
        sa.Column('contato_telefone', sa.String(length=20), nullable=True),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('pendente', 'emitida', 'paga', 'cancelada', name='statuscontareceber'), nullable=False),
        sa.Column('valor_pago', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column('data_pagamento', sa.Date(), nullable=True),
        sa.Column('forma_pagamento', forma_pagamento, nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['lote_id'], ['contas_receber_lotes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_contas_receber_id'), 'contas_receber', ['id'], unique=False)
    op.create_index(op.f('ix_contas_receber_lote_id'), 'contas_receber', ['lote_id'], unique=False)
    op.create_index(op.f('ix_contas_receber_company_id'), 'contas_receber', ['company_id'], unique=False)
    op.create_index(op.f('ix_contas_receber_project_id'), 'contas_receber', ['project_id'], unique=False)
    op.create_index(op.f('ix_contas_receber_data_cobranca'), 'contas_receber', ['data_cobranca'], unique=False)
    op.create_index(op.f('ix_contas_receber_status'), 'contas_receber', ['status'], unique=False)

    op.create_table('contas_pagar',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=True),
        sa.Column('base_cobranca', base_cobranca, nullable=False),
        sa.Column('tipo_pagamento', tipo_cobranca, nullable=False),
        sa.Column('valor_despesa', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('data_vencimento', sa.Date(), nullable=False),
        sa.Column('dia_emissao_nota', sa.Integer(), nullable=True),
        sa.Column('fornecedor_nome', sa.String(length=200), nullable=True),
        sa.Column('fornecedor_email', sa.String(length=255), nullable=True),
        sa.Column('fornecedor_telefone', sa.String(length=20), nullable=True),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('pendente', 'paga', 'cancelada', name='statuscontapagar'), nullable=False),
        sa.Column('valor_pago', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column('data_pagamento', sa.Date(), nullable=True),
        sa.Column('forma_pagamento', forma_pagamento, nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_contas_pagar_id'), 'contas_pagar', ['id'], unique=False)
    op.create_index(op.f('ix_contas_pagar_project_id'), 'contas_pagar', ['project_id'], unique=False)
    op.create_index(op.f('ix_contas_pagar_data_vencimento'), 'contas_pagar', ['data_vencimento'], unique=False)
    op.create_index(op.f('ix_contas_pagar_status'), 'contas_pagar', ['status'], unique=False)

    # Documentos
    op.create_table('project_folders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('parent_folder_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_folder_id'], ['project_folders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_project_folders_id'), 'project_folders', ['id'], unique=False)
    op.create_index(op.f('ix_project_folders_project_id'), 'project_folders', ['project_id'], unique=False)
    op.create_index(op.f('ix_project_folders_parent_folder_id'), 'project_folders', ['parent_folder_id'], unique=False)

    op.create_table('project_documents',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('folder_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=300), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('file_path', sa.String(length=500), nullable=False),
        sa.Column('bucket_name', sa.String(length=100), nullable=False),
        sa.Column('mime_type', sa.String(length=100), nullable=False),
        sa.Column('size', sa.BigInteger(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('uploaded_by', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['folder_id'], ['project_folders.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['uploaded_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_project_documents_id'), 'project_documents', ['id'], unique=False)
    op.create_index(op.f('ix_project_documents_project_id'), 'project_documents', ['project_id'], unique=False)
    op.create_index(op.f('ix_project_documents_folder_id'), 'project_documents', ['folder_id'], unique=False)

    # Plano de mídia
    op.create_table('media_categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index(op.f('ix_media_categories_id'), 'media_categories', ['id'], unique=False)

    op.create_table('media_pieces',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('channel', sa.String(length=120), nullable=False),
        sa.Column('media_type', sa.Enum('online', 'offline', name='mediatype'), nullable=False),
        sa.Column('piece_type', sa.String(length=120), nullable=False),
        sa.Column('schedule_time', sa.String(length=50), nullable=True),
        sa.Column('cost_per_insertion', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column('global_cost', sa.Numeric(precision=15, scale=2), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['media_categories.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('start_date <= end_date', name='ck_media_pieces_date_range')
    )
    op.create_index(op.f('ix_media_pieces_id'), 'media_pieces', ['id'], unique=False)
    op.create_index(op.f('ix_media_pieces_project_id'), 'media_pieces', ['project_id'], unique=False)
    op.create_index(op.f('ix_media_pieces_category_id'), 'media_pieces', ['category_id'], unique=False)

    op.create_table('media_insertions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('media_piece_id', sa.Integer(), nullable=False),
        sa.Column('insertion_date', sa.Date(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('actual_cost', sa.Numeric(precision=15, scale=2), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['media_piece_id'], ['media_pieces.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='ck_media_insertions_quantity_positive')
    )
    op.create_index(op.f('ix_media_insertions_id'), 'media_insertions', ['id'], unique=False)
    op.create_index(op.f('ix_media_insertions_media_piece_id'), 'media_insertions', ['media_piece_id'], unique=False)
    op.create_index(op.f('ix_media_insertions_insertion_date'), 'media_insertions', ['insertion_date'], unique=False)

    op.create_table('media_budgets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('month_year', sa.Date(), nullable=False),
        sa.Column('budgeted_amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('actual_amount', sa.Numeric(precision=15, scale=2), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('project_id', 'month_year', name='uq_media_budgets_project_month')
    )
    op.create_index(op.f('ix_media_budgets_id'), 'media_budgets', ['id'], unique=False)
    op.create_index(op.f('ix_media_budgets_project_id'), 'media_budgets', ['project_id'], unique=False)

    op.create_table('system_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('logo_url', sa.String(length=500), nullable=True),
        sa.Column('logo_dark_url', sa.String(length=500), nullable=True),
        sa.Column('favicon_url', sa.String(length=500), nullable=True),
        sa.Column('primary_color_h', sa.Integer(), nullable=True),
        sa.Column('primary_color_s', sa.Integer(), nullable=True),
        sa.Column('primary_color_l', sa.Integer(), nullable=True),
        sa.Column('secondary_color_h', sa.Integer(), nullable=True),
        sa.Column('secondary_color_s', sa.Integer(), nullable=True),
        sa.Column('secondary_color_l', sa.Integer(), nullable=True),
        sa.Column('allow_theme_toggle', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_system_settings_id'), 'system_settings', ['id'], unique=False)

    # Categorias fixas do plano de mídia
    op.execute("""
        INSERT INTO media_categories (name, order_index, is_active) VALUES
        ('Digital', 1, true),
        ('TV', 2, true),
        ('Rádio', 3, true),
        ('Mídia Exterior', 4, true),
        ('Impressos', 5, true)
    """)


def downgrade() -> None:
    for table in (
        'system_settings',
        'media_budgets',
        'media_insertions',
        'media_pieces',
        'media_categories',
        'project_documents',
        'project_folders',
        'contas_pagar',
        'contas_receber',
        'contas_receber_lotes',
        'terrenos',
        'project_members',
        'project_profiles',
        'projects',
        'user_roles',
        'users',
        'companies',
    ):
        op.drop_table(table)

    for enum_name in (
        'mediatype',
        'formapagamento',
        'statuscontapagar',
        'statuscontareceber',
        'tipocobranca',
        'basecobranca',
        'terrenostatus',
        'projectstatus',
        'approle',
        'userstatus',
        'companystatus',
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
