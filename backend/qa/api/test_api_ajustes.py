"""
Tests de API - Ajustes financieros y bonificaciones
"""
import pytest
from decimal import Decimal


class TestAjustesAPI:
    def test_dimensiones(self, client, datos_base):
        r = client.post("/api/ajustes/dimensiones", json={
            "codigo": "descuento", "descripcion": "Descuento comercial", "naturaleza": "EGRESO",
        })
        assert r.status_code == 201
        assert r.json()["codigo"] == "DESCUENTO"

        r = client.post("/api/ajustes/dimensiones", json={
            "codigo": "DESCUENTO", "descripcion": "Repetido", "naturaleza": "EGRESO",
        })
        assert r.status_code == 400

        codigos = [d["codigo"] for d in client.get("/api/ajustes/dimensiones").json()]
        assert codigos == ["BONIFICACION", "DESCUENTO"]

    def test_crear_y_anular(self, client, datos_base, crear_venta):
        id_venta = crear_venta(100)
        r = client.post("/api/ajustes", json={
            "id_tipo_ajuste": datos_base["dim_bonificacion"],
            "monto": "10",
            "moneda": "UYU",
            "detalle": [{"id_venta": id_venta, "monto_aplicado": "10"}],
        })
        assert r.status_code == 201, r.text
        id_ajuste = r.json()["id"]

        r = client.post(f"/api/ajustes/{id_ajuste}/anular")
        assert r.status_code == 200
        assert r.json()["estado"] == "ANULADO"

        r = client.post(f"/api/ajustes/{id_ajuste}/anular")
        assert r.status_code == 400

    def test_ajuste_inexistente(self, client, datos_base):
        r = client.get("/api/ajustes/42")
        assert r.status_code == 404

    def test_bonificacion_sobre_pago_de_gasto(self, client, datos_base, crear_gasto):
        id_gasto = crear_gasto(100)
        r = client.post("/api/gastos/obligaciones/pagar", json={
            "id_gasto": id_gasto,
            "lineas": [{"monto": "100", "metodo_pago": "EFECTIVO"}],
        })
        id_transaccion = r.json()["transacciones"][0]["id"]

        r = client.post(f"/api/gastos/pagos/{id_transaccion}/bonificacion", json={"monto_bonificacion": "10"})
        assert r.status_code == 201, r.text
        detalle = r.json()["detalle"][0]
        assert Decimal(detalle["porcentaje"]) == Decimal("10")
        assert Decimal(detalle["base_calculo"]) == Decimal("100")

        r = client.post(f"/api/gastos/pagos/{id_transaccion}/bonificacion", json={"monto_bonificacion": "150"})
        assert r.status_code == 400
