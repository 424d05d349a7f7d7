"""esquema inicial: cuentas, obligaciones, pagos, cambios y ajustes

Revision ID: 20260101_01
Revises:
Create Date: 2026-01-01

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20260101_01'
down_revision = None
branch_labels = None
depends_on = None

UNA_OBLIGACION = "(id_venta IS NOT NULL AND id_gasto IS NULL) OR (id_venta IS NULL AND id_gasto IS NOT NULL)"

# Saldo derivado por cuenta: transacciones + cambios + ajustes, solo ACTIVO
VISTA_SALDO = """
CREATE VIEW v_saldo_cuenta_tiempo_real AS
SELECT
    c.id AS id_cuenta,
    c.nombre AS nombre,
    c.moneda AS moneda,
    COALESCE((SELECT SUM(t.monto) FROM transacciones_pago t
              WHERE t.id_cuenta = c.id AND t.tipo = 'INGRESO' AND t.estado = 'ACTIVO'), 0)
  - COALESCE((SELECT SUM(t.monto) FROM transacciones_pago t
              WHERE t.id_cuenta = c.id AND t.tipo = 'EGRESO' AND t.estado = 'ACTIVO'), 0)
  + COALESCE((SELECT SUM(cm.monto_destino) FROM cambios_moneda cm
              WHERE cm.id_cuenta_destino = c.id AND cm.estado = 'ACTIVO'), 0)
  - COALESCE((SELECT SUM(cm.monto_origen) FROM cambios_moneda cm
              WHERE cm.id_cuenta_origen = c.id AND cm.estado = 'ACTIVO'), 0)
  + COALESCE((SELECT SUM(a.monto) FROM ajustes_financieros a
              JOIN dim_ajustes_financieros d ON d.id = a.id_tipo_ajuste
              WHERE a.id_cuenta = c.id AND a.estado = 'ACTIVO' AND d.naturaleza = 'INGRESO'), 0)
  - COALESCE((SELECT SUM(a.monto) FROM ajustes_financieros a
              JOIN dim_ajustes_financieros d ON d.id = a.id_tipo_ajuste
              WHERE a.id_cuenta = c.id AND a.estado = 'ACTIVO' AND d.naturaleza = 'EGRESO'), 0)
    AS saldo_teorico
FROM cuentas_dinero c
"""


def upgrade() -> None:
    op.create_table(
        'clientes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nombre', sa.String(length=100), nullable=False),
        sa.Column('apellido', sa.String(length=100), nullable=True),
        sa.Column('telefono', sa.String(length=30), nullable=True),
        sa.Column('direccion', sa.String(length=300), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'categorias_gasto',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nombre', sa.String(length=100), nullable=False),
        sa.Column('id_padre', sa.Integer(), nullable=True),
        sa.Column('activa', sa.Boolean(), nullable=True),
        sa.ForeignKeyConstraint(['id_padre'], ['categorias_gasto.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'cuentas_dinero',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nombre', sa.String(length=50), nullable=False),
        sa.Column('tipo', sa.String(length=10), nullable=False),
        sa.Column('moneda', sa.String(length=3), nullable=False),
        sa.Column('activa', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('nombre')
    )
    op.create_table(
        'ventas',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('fecha_venta', sa.DateTime(), nullable=True),
        sa.Column('id_cliente', sa.Integer(), nullable=False),
        sa.Column('canal', sa.String(length=10), nullable=True),
        sa.Column('total', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('moneda', sa.String(length=3), nullable=True),
        sa.Column('fecha_vencimiento', sa.Date(), nullable=True),
        sa.Column('saldo_pendiente', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('estado', sa.String(length=20), nullable=True),
        sa.Column('nota', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('saldo_pendiente >= 0', name='ck_ventas_saldo_no_negativo'),
        sa.CheckConstraint("estado IN ('PAGO PENDIENTE','PAGO PARCIAL','PAGO','CANCELADO')", name='ck_ventas_estado'),
        sa.ForeignKeyConstraint(['id_cliente'], ['clientes.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_ventas_fecha_venta', 'ventas', ['fecha_venta'])
    op.create_index('ix_ventas_id_cliente', 'ventas', ['id_cliente'])
    op.create_index('idx_ventas_cliente_fecha', 'ventas', ['id_cliente', 'fecha_venta', 'id'])

    op.create_table(
        'gastos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('fecha', sa.DateTime(), nullable=True),
        sa.Column('id_categoria', sa.Integer(), nullable=False),
        sa.Column('id_subcategoria', sa.Integer(), nullable=True),
        sa.Column('proveedor', sa.String(length=200), nullable=True),
        sa.Column('num_comprobante', sa.String(length=50), nullable=True),
        sa.Column('monto_total', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('moneda', sa.String(length=3), nullable=False),
        sa.Column('fecha_vencimiento', sa.Date(), nullable=True),
        sa.Column('saldo_pendiente', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('estado', sa.String(length=20), nullable=True),
        sa.Column('nota', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('saldo_pendiente >= 0', name='ck_gastos_saldo_no_negativo'),
        sa.CheckConstraint("estado IN ('PAGO PENDIENTE','PAGO PARCIAL','PAGO')", name='ck_gastos_estado'),
        sa.ForeignKeyConstraint(['id_categoria'], ['categorias_gasto.id'], ),
        sa.ForeignKeyConstraint(['id_subcategoria'], ['categorias_gasto.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_gastos_fecha', 'gastos', ['fecha'])
    op.create_index('ix_gastos_id_categoria', 'gastos', ['id_categoria'])

    op.create_table(
        'transacciones_pago',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tipo', sa.String(length=10), nullable=False),
        sa.Column('fecha', sa.DateTime(), nullable=True),
        sa.Column('id_cliente', sa.Integer(), nullable=True),
        sa.Column('monto', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('moneda', sa.String(length=3), nullable=False),
        sa.Column('metodo_pago', sa.String(length=20), nullable=False),
        sa.Column('referencia', sa.String(length=100), nullable=True),
        sa.Column('nota', sa.Text(), nullable=True),
        sa.Column('id_cuenta', sa.Integer(), nullable=False),
        sa.Column('estado', sa.String(length=10), nullable=True),
        sa.CheckConstraint('monto > 0', name='ck_transacciones_monto_positivo'),
        sa.ForeignKeyConstraint(['id_cliente'], ['clientes.id'], ),
        sa.ForeignKeyConstraint(['id_cuenta'], ['cuentas_dinero.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_transacciones_pago_fecha', 'transacciones_pago', ['fecha'])
    op.create_index('ix_transacciones_pago_id_cliente', 'transacciones_pago', ['id_cliente'])
    op.create_index('ix_transacciones_pago_id_cuenta', 'transacciones_pago', ['id_cuenta'])

    op.create_table(
        'aplicaciones_pago',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('id_transaccion', sa.Integer(), nullable=False),
        sa.Column('id_venta', sa.Integer(), nullable=True),
        sa.Column('id_gasto', sa.Integer(), nullable=True),
        sa.Column('monto_aplicado', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('fecha_aplicacion', sa.DateTime(), nullable=True),
        sa.CheckConstraint(UNA_OBLIGACION, name='ck_aplicaciones_una_obligacion'),
        sa.CheckConstraint('monto_aplicado > 0', name='ck_aplicaciones_monto_positivo'),
        sa.ForeignKeyConstraint(['id_transaccion'], ['transacciones_pago.id'], ),
        sa.ForeignKeyConstraint(['id_venta'], ['ventas.id'], ),
        sa.ForeignKeyConstraint(['id_gasto'], ['gastos.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_aplicaciones_pago_id_transaccion', 'aplicaciones_pago', ['id_transaccion'])
    op.create_index('idx_aplicaciones_venta', 'aplicaciones_pago', ['id_venta'])
    op.create_index('idx_aplicaciones_gasto', 'aplicaciones_pago', ['id_gasto'])

    op.create_table(
        'cambios_moneda',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('fecha_cambio', sa.DateTime(), nullable=True),
        sa.Column('id_cuenta_origen', sa.Integer(), nullable=False),
        sa.Column('id_cuenta_destino', sa.Integer(), nullable=False),
        sa.Column('monto_origen', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('moneda_origen', sa.String(length=3), nullable=False),
        sa.Column('monto_destino', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('moneda_destino', sa.String(length=3), nullable=False),
        sa.Column('factor_conversion', sa.Numeric(precision=14, scale=4), nullable=False),
        sa.Column('nota', sa.Text(), nullable=True),
        sa.Column('estado', sa.String(length=10), nullable=True),
        sa.CheckConstraint('id_cuenta_origen <> id_cuenta_destino', name='ck_cambios_cuentas_distintas'),
        sa.CheckConstraint('monto_origen > 0 AND monto_destino > 0', name='ck_cambios_montos_positivos'),
        sa.ForeignKeyConstraint(['id_cuenta_origen'], ['cuentas_dinero.id'], ),
        sa.ForeignKeyConstraint(['id_cuenta_destino'], ['cuentas_dinero.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_cambios_moneda_fecha_cambio', 'cambios_moneda', ['fecha_cambio'])
    op.create_index('ix_cambios_moneda_id_cuenta_origen', 'cambios_moneda', ['id_cuenta_origen'])
    op.create_index('ix_cambios_moneda_id_cuenta_destino', 'cambios_moneda', ['id_cuenta_destino'])

    op.create_table(
        'dim_ajustes_financieros',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('codigo', sa.String(length=50), nullable=False),
        sa.Column('descripcion', sa.String(length=200), nullable=False),
        sa.Column('naturaleza', sa.String(length=10), nullable=False),
        sa.Column('activo', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('codigo')
    )
    op.create_table(
        'ajustes_financieros',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('fecha', sa.DateTime(), nullable=True),
        sa.Column('id_tipo_ajuste', sa.Integer(), nullable=False),
        sa.Column('monto', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('moneda', sa.String(length=3), nullable=False),
        sa.Column('id_cuenta', sa.Integer(), nullable=True),
        sa.Column('referencia', sa.String(length=100), nullable=True),
        sa.Column('nota', sa.Text(), nullable=True),
        sa.Column('estado', sa.String(length=10), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['id_tipo_ajuste'], ['dim_ajustes_financieros.id'], ),
        sa.ForeignKeyConstraint(['id_cuenta'], ['cuentas_dinero.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_ajustes_financieros_fecha', 'ajustes_financieros', ['fecha'])

    op.create_table(
        'ajustes_detalle',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('id_ajuste', sa.Integer(), nullable=False),
        sa.Column('id_venta', sa.Integer(), nullable=True),
        sa.Column('id_gasto', sa.Integer(), nullable=True),
        sa.Column('monto_aplicado', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('porcentaje', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('base_calculo', sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column('fecha_aplicacion', sa.DateTime(), nullable=True),
        sa.CheckConstraint(UNA_OBLIGACION, name='ck_ajustes_detalle_una_obligacion'),
        sa.ForeignKeyConstraint(['id_ajuste'], ['ajustes_financieros.id'], ),
        sa.ForeignKeyConstraint(['id_venta'], ['ventas.id'], ),
        sa.ForeignKeyConstraint(['id_gasto'], ['gastos.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_ajustes_detalle_id_ajuste', 'ajustes_detalle', ['id_ajuste'])
    op.create_index('ix_ajustes_detalle_id_venta', 'ajustes_detalle', ['id_venta'])
    op.create_index('ix_ajustes_detalle_id_gasto', 'ajustes_detalle', ['id_gasto'])

    op.execute(VISTA_SALDO)


def downgrade() -> None:
    op.execute("DROP VIEW IF EXISTS v_saldo_cuenta_tiempo_real")
    op.drop_table('ajustes_detalle')
    op.drop_table('ajustes_financieros')
    op.drop_table('dim_ajustes_financieros')
    op.drop_table('cambios_moneda')
    op.drop_table('aplicaciones_pago')
    op.drop_table('transacciones_pago')
    op.drop_table('gastos')
    op.drop_table('ventas')
    op.drop_table('cuentas_dinero')
    op.drop_table('categorias_gasto')
    op.drop_table('clientes')
