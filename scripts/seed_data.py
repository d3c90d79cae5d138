"""
Script para crear usuarios y productos de ejemplo
"""
from decimal import Decimal

from app.config.database import SessionLocal, init_db
from app.shared.database.models import Product, User
from app.core.auth.service import AuthService

TEST_USERS = [
    {
        "email": "admin@pdv.com",
        "password": "admin123",
        "first_name": "Ana",
        "last_name": "Administradora",
        "role": "admin"
    },
    {
        "email": "vendedor@pdv.com",
        "password": "vendedor123",
        "first_name": "Juan",
        "last_name": "Vendedor",
        "role": "seller"
    }
]

# code, name, category, brand, cost, price, stock, min, max, unit
SAMPLE_PRODUCTS = [
    ("MOUSE001", "Mouse Óptico USB", "Periféricos", "Logitech", "25.00", "45.00", 50, 5, 100, "UN"),
    ("TECLADO001", "Teclado Mecánico RGB", "Periféricos", "Corsair", "180.00", "299.99", 20, 3, 50, "UN"),
    ("MONITOR001", "Monitor 24\" Full HD", "Monitores", "LG", "450.00", "799.99", 15, 2, 30, "UN"),
    ("NOTEBOOK001", "Notebook Intel i5 8GB", "Computadores", "Lenovo", "2200.00", "3499.99", 8, 1, 20, "UN"),
    ("SSD001", "SSD 480GB SATA", "Almacenamiento", "Kingston", "120.00", "199.99", 25, 5, 50, "UN"),
    ("PAPEL001", "Papel A4 500 hojas", "Papelería", "Chamex", "12.00", "22.99", 100, 10, 200, "PQT"),
    ("BOLIGRAFO001", "Bolígrafo Azul", "Escritura", "Bic", "0.50", "1.50", 500, 50, 1000, "UN"),
    ("CAFE001", "Café Molido 500g", "Bebidas", "Pilão", "8.50", "16.99", 40, 5, 80, "UN"),
    ("CABLE001", "Cable USB-C 1m", "Cables", "Multilaser", "8.00", "19.99", 35, 5, 70, "UN"),
    ("AUDIFONO001", "Audífonos Bluetooth", "Audio", "JBL", "80.00", "149.99", 18, 3, 40, "UN"),
    ("LOWSTOCK001", "Producto con Stock Bajo", "Prueba", "Ejemplo", "10.00", "20.00", 2, 10, 50, "UN"),
    ("NOSTOCK001", "Producto Sin Stock", "Prueba", "Ejemplo", "5.00", "15.00", 0, 5, 30, "UN"),
]


def seed_users(db) -> int:
    created = 0
    for user_data in TEST_USERS:
        if db.query(User).filter(User.email == user_data["email"]).first():
            continue
        db.add(User(
            email=user_data["email"],
            password_hash=AuthService.get_password_hash(user_data["password"]),
            first_name=user_data["first_name"],
            last_name=user_data["last_name"],
            role=user_data["role"],
            is_active=True
        ))
        created += 1
    return created


def seed_products(db) -> int:
    if db.query(Product).count() > 0:
        return 0

    for code, name, category, brand, cost, price, stock, minimum, maximum, unit in SAMPLE_PRODUCTS:
        db.add(Product(
            code=code,
            name=name,
            category=category,
            brand=brand,
            cost_price=Decimal(cost),
            sale_price=Decimal(price),
            current_stock=stock,
            minimum_stock=minimum,
            maximum_stock=maximum,
            unit=unit,
            is_active=True
        ))
    return len(SAMPLE_PRODUCTS)


def main():
    init_db()
    db = SessionLocal()

    try:
        users = seed_users(db)
        products = seed_products(db)
        db.commit()

        print(f"✅ {users} usuarios y {products} productos creados")
        print("\n🔑 CREDENCIALES DE PRUEBA:")
        for user_data in TEST_USERS:
            print(f"   {user_data['role']:8} | {user_data['email']:20} | {user_data['password']}")

    except Exception as e:
        print(f"❌ Error creando datos de ejemplo: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
