"""call records and agent directory

Revision ID: 202610180001
Revises:
Create Date: 2026-10-18 00:01:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '202610180001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table('call_records',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), primary_key=True, autoincrement=True),
        sa.Column('callid', sa.String(64), nullable=False, unique=True),
        sa.Column('call_type', sa.String(16), nullable=False,
                  comment='Direction tag: outbound, inbound, campaign'),
        sa.Column('called_time', sa.Float(),
                  comment='Unix time of the call, seconds or milliseconds'),
        sa.Column('caller_id_number', sa.String(32)),
        sa.Column('callee_id_number', sa.String(32)),
        sa.Column('agent_history', sa.JSON(), comment='Agent-leg events (outbound/inbound)'),
        sa.Column('lead_history', sa.JSON(), comment='Lead events (campaign)'),
        sa.Column('raw_data', sa.JSON()),
        sa.Column('agent_answered_ext', sa.String(16)),
        sa.Column('agent_ext', sa.String(16)),
        sa.Column('extension', sa.String(16)),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table('agent_details',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), primary_key=True, autoincrement=True),
        sa.Column('extension', sa.String(16), nullable=False, unique=True),
        sa.Column('agent_name', sa.String(128)),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_index('ix_call_records_call_type', 'call_records', ['call_type'])
    op.create_index('ix_call_records_called_time', 'call_records', ['called_time'])
    op.create_index('ix_call_records_callee_id_number', 'call_records', ['callee_id_number'])

def downgrade() -> None:
    op.drop_index('ix_call_records_callee_id_number', table_name='call_records')
    op.drop_index('ix_call_records_called_time', table_name='call_records')
    op.drop_index('ix_call_records_call_type', table_name='call_records')
    op.drop_table('agent_details')
    op.drop_table('call_records')
