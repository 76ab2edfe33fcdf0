# ============================================================
# Catálogo inmutable de SKUs
# ============================================================
# (codigo, nombre, tipo, calibre, unidades_por_caja, unidades_por_bandeja)
SKU_CATALOGO = [
    ("BLA 1ERA", "blanco 1era", "blanco", "primera", 180, 30),
    ("BLA 2DA", "blanco 2da", "blanco", "segunda", 180, 30),
    ("BLA 3ERA", "blanco 3era", "blanco", "tercera", 180, 30),
    ("BLA 4TA", "blanco 4ta", "blanco", "cuarta", 180, 30),
    ("BLA EXTRA", "blanco extra", "blanco", "extra", 180, 30),
    ("BLA JUMBO", "blanco jumbo", "blanco", "jumbo", 100, 20),
    ("BLA MAN", "blanco sucio", "blanco", "sucio", 180, 30),
    ("BLA SINCAL", "blanco sin calibrar", "blanco", "sin calibre", 180, 30),
    ("BLA SUPER", "blanco super", "blanco", "super extra", 100, 20),
    ("BLA TRI", "blanco trizado", "blanco", "trizados", 180, 30),
    ("COL 1ERA", "color 1era", "color", "primera", 180, 30),
    ("COL 2DA", "color 2da", "color", "segunda", 180, 30),
    ("COL 3ERA", "color 3era", "color", "tercera", 180, 30),
    ("COL 4TA", "color 4ta", "color", "cuarta", 180, 30),
    ("COL EXTRA", "color extra", "color", "extra", 180, 30),
    ("COL JUMBO", "color jumbo", "color", "jumbo", 100, 20),
    ("COL MAN", "color sucio", "color", "sucio", 180, 30),
    ("COL SINCAL", "color sin calibrar", "color", "sin calibre", 180, 30),
    ("COL SUPER", "color super", "color", "super extra", 100, 20),
    ("COL TRI", "color trizado", "color", "trizados", 180, 30),
    ("DES", "desecho", "mixto", "merma", 180, 30),
    ("OTRO", "otro", "mixto", "merma", 180, 30),
]
