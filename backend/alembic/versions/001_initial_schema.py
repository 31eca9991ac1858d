"""architectures, services, boms and compliance controls

Revision ID: 001
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('architectures',
        sa.Column('arch_id', sa.String(255), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('short_desc', sa.Text(), nullable=True),
        sa.Column('long_desc', sa.Text(), nullable=True),
        sa.Column('diagram_folder', sa.String(255), nullable=True),
        sa.Column('diagram_link_drawio', sa.String(255), nullable=True),
        sa.Column('diagram_link_png', sa.String(255), nullable=True),
        sa.Column('automation_variables', sa.Text(), nullable=True),
        sa.Column('confidential', sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table('services',
        sa.Column('service_id', sa.String(255), primary_key=True),
        sa.Column('ibm_catalog_id', sa.String(255), nullable=True),
        sa.Column('ibm_catalog_service', sa.String(255), nullable=True),
        sa.Column('cloud_automation_id', sa.String(255), nullable=True),
        sa.Column('desc', sa.Text(), nullable=True),
        sa.Column('grouping', sa.String(255), nullable=True),
        sa.Column('deployment_method', sa.String(255), nullable=True),
        sa.Column('provision', sa.String(255), nullable=True),
    )
    op.create_index('ix_services_cloud_automation_id', 'services', ['cloud_automation_id'])

    op.create_table('boms',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('arch_id', sa.String(255), sa.ForeignKey('architectures.arch_id'), nullable=False),
        sa.Column('service_id', sa.String(255), sa.ForeignKey('services.service_id'), nullable=False),
        sa.Column('desc', sa.Text(), nullable=True),
        sa.Column('automation_variables', sa.Text(), nullable=True),
    )
    op.create_index('ix_boms_arch_id', 'boms', ['arch_id'])
    op.create_index('ix_boms_service_id', 'boms', ['service_id'])

    op.create_table('controls',
        sa.Column('id', sa.String(255), primary_key=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('family', sa.String(255), nullable=True),
        sa.Column('parent_control', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('parameters', sa.Text(), nullable=True),
        sa.Column('implementation', sa.Text(), nullable=True),
    )

    op.create_table('profiles',
        sa.Column('id', sa.String(255), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
    )

    op.create_table('goals',
        sa.Column('goal_id', sa.String(255), primary_key=True),
        sa.Column('description', sa.Text(), nullable=True),
    )

    op.create_table('control_mappings',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('control_id', sa.String(255), sa.ForeignKey('controls.id'), nullable=False),
        sa.Column('service_id', sa.String(255), sa.ForeignKey('services.service_id'), nullable=False),
        sa.Column('scc_profile', sa.String(255), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
    )
    op.create_index('ix_control_mappings_control_id', 'control_mappings', ['control_id'])
    op.create_index('ix_control_mappings_service_id', 'control_mappings', ['service_id'])
    op.create_index('ix_control_mappings_scc_profile', 'control_mappings', ['scc_profile'])

    op.create_table('control_mapping_goals',
        sa.Column('mapping_id', sa.Integer(),
                  sa.ForeignKey('control_mappings.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('goal_id', sa.String(255), sa.ForeignKey('goals.goal_id'), primary_key=True),
    )


def downgrade() -> None:
    op.drop_table('control_mapping_goals')
    op.drop_index('ix_control_mappings_scc_profile', table_name='control_mappings')
    op.drop_index('ix_control_mappings_service_id', table_name='control_mappings')
    op.drop_index('ix_control_mappings_control_id', table_name='control_mappings')
    op.drop_table('control_mappings')
    op.drop_table('goals')
    op.drop_table('profiles')
    op.drop_table('controls')
    op.drop_index('ix_boms_service_id', table_name='boms')
    op.drop_index('ix_boms_arch_id', table_name='boms')
    op.drop_table('boms')
    op.drop_index('ix_services_cloud_automation_id', table_name='services')
    op.drop_table('services')
    op.drop_table('architectures')
