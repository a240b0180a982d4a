"""Creates the local products table with a small demo catalog."""
from datetime import datetime

import pandas as pd

from storefront.config import settings

PRODUCTS = [
    ("Oak Side Table", "Solid oak, oiled finish.", "129.00", "furniture", 12),
    ("Linen Throw", "Stonewashed linen, 130x170 cm.", "59.50", "textiles", 30),
    ("Ceramic Vase", "Hand-thrown stoneware.", "34.90", "decor", 18),
    ("Brass Floor Lamp", "Adjustable arm, E27 socket.", "189.00", "lighting", 7),
    ("Wool Cushion", "Merino cover with feather insert.", "42.00", "textiles", 25),
    ("Pendant Light", "Opal glass shade.", "89.00", "lighting", 10),
    ("Walnut Shelf", "Wall-mounted, 80 cm.", "74.00", "furniture", 9),
    ("Scented Candle", "Cedar and fig, 40 h burn time.", "19.99", "decor", 60),
]


settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
path = settings.DATA_DIR / "products.csv"

if not path.exists():
    now = datetime.utcnow().isoformat(sep=" ")
    df = pd.DataFrame(
        [
            {
                "id": i,
                "name": name,
                "description": description,
                "price": price,
                "image_url": f"/images/products/{i}.jpg",
                "category": category,
                "stock": stock,
                "created_at": now,
            }
            for i, (name, description, price, category, stock) in enumerate(PRODUCTS, start=1)
        ]
    )
    df.to_csv(path, index=False)
    print(f"Created {path} with {len(df)} products")
else:
    print(f"{path} already exists")
