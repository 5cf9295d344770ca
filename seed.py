# Reference products loaded into every store at startup.

PRODUCTS = [
    {
        "id": 1,
        "name": "Organic Oat Milk",
        "brand": "EcoFoods",
        "category": "Dairy Alternatives",
        "barcode": "8901234567890",
        "ecoScore": "A+",
        "metrics": {"materials": 92, "carbonFootprint": 85, "recyclability": 78},
        "impact": {
            "co2": "0.4kg CO₂e",
            "water": "48 liters",
            "packaging": "78% Recyclable",
            "land": "Minimal Impact",
        },
        "ingredients": "Oats (water, organic oats), sunflower oil, sea salt, natural flavors.",
        "certifications": [
            {"name": "Organic", "color": "green"},
            {"name": "Non-GMO", "color": "blue"},
            {"name": "Vegan", "color": "amber"},
        ],
        "production": "Made using renewable energy sources. Water-efficient processing.",
        "packaging_details": "Tetra Pak with plant-based cap. Please rinse and recycle where facilities exist.",
    },
    {
        "id": 2,
        "name": "Bamboo Toothbrush",
        "brand": "EcoSmile",
        "category": "Personal Care",
        "barcode": "7809123456789",
        "ecoScore": "A",
        "metrics": {"materials": 95, "carbonFootprint": 90, "recyclability": 80},
        "impact": {
            "co2": "0.2kg CO₂e",
            "water": "15 liters",
            "packaging": "100% Compostable",
            "land": "Sustainable bamboo",
        },
        "ingredients": "Bamboo handle, plant-based bristles, natural dyes.",
        "certifications": [
            {"name": "Plastic-Free", "color": "blue"},
            {"name": "Biodegradable", "color": "green"},
        ],
        "production": "Handcrafted using sustainable bamboo. Low-impact manufacturing.",
        "packaging_details": "Cardboard packaging made from recycled materials. Fully compostable.",
    },
]

# Static for now, keyed by product id
ALTERNATIVES = {
    1: [
        {"id": 101, "name": "Small Planet Oat Milk", "ecoScore": "A+", "feature": "Zero-waste packaging"},
        {"id": 102, "name": "Local Farms Oat Milk", "ecoScore": "A", "feature": "Local production, less transport"},
    ],
}
