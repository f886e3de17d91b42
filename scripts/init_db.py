"""Creates the data directory and seeds a small products table for local development."""
import pandas as pd

from storefront.config import settings
from storefront.database import db
from storefront.models.product import Product


SAMPLE_PRODUCTS = [
    Product(
        id="linen-shirt",
        name="Linen Button-Down Shirt",
        category="Top Wear",
        price=39.99,
        sizes=["S", "M", "L", "XL"],
        images=[{"url": "https://picsum.photos/500/500?random=1", "altText": "Linen shirt"}],
    ),
    Product(
        id="chino-pants",
        name="Slim Fit Chinos",
        category="Bottom Wear",
        price=49.5,
        sizes=["28", "30", "32", "34"],
        images=[{"url": "https://picsum.photos/500/500?random=2", "altText": "Chinos"}],
    ),
    Product(id="knit-beanie", name="Ribbed Knit Beanie", category="Accessories", price=15.0),
]


db.data_dir.mkdir(parents=True, exist_ok=True)
products_path = db._file_path("products")

if not products_path.exists():
    df = pd.DataFrame([p.to_dict() for p in SAMPLE_PRODUCTS])
    if products_path.suffix.lower() == ".xlsx":
        df.to_excel(products_path, index=False)
    else:
        df.to_csv(products_path, index=False)
    print(f"Created {products_path} with {len(df)} products")
else:
    print(f"{products_path} already exists")

print(f"Carts will be stored in {db._file_path('carts')} (DATA_DIR={settings.DATA_DIR})")
