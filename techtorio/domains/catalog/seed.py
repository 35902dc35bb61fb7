"""Default category tree and an idempotent seeder for it."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from techtorio.domains.catalog.models import Category
from techtorio.extensions import db

logger = logging.getLogger(__name__)

OTHER_NAME = "Other"
OTHER_DESCRIPTION = "Miscellaneous / Other items"

# Department -> (description, [(subcategory, description, [(leaf, description), ...]), ...])
DEFAULT_TREE: List[Tuple[str, str, List[Tuple[str, str, List[Tuple[str, str]]]]]] = [
    (
        "Electronic Devices",
        "Smartphones, laptops, tablets, and other electronic devices",
        [
            ("Feature Phones", "Basic mobile phones", []),
            ("Really Like New", "Refurbished and certified pre-owned devices", []),
            ("Security Cameras", "CCTV and security camera systems", []),
            ("Gaming Consoles", "PlayStation, Xbox, and gaming systems", []),
            (
                "Smart Phones",
                "Android and iOS smartphones",
                [
                    ("Nokia Mobiles", "Nokia feature phones and smartphones"),
                    ("Honor Mobiles", "Honor smartphones"),
                    ("Infinix Mobiles", "Infinix smartphones"),
                    ("Realme Mobiles", "Realme smartphones"),
                    ("Redmi Mobiles", "Xiaomi Redmi smartphones"),
                    ("Oneplus Mobiles", "OnePlus smartphones"),
                    ("Oppo Mobile Phones", "Oppo smartphones"),
                    ("Apple iPhones", "iPhone smartphones"),
                    ("Tecno Mobiles", "Tecno smartphones"),
                    ("Samsung Mobile Phones", "Samsung Galaxy smartphones"),
                    ("Vivo Mobiles", "Vivo smartphones"),
                ],
            ),
            ("Cameras & Drones", "Digital cameras, action cams, and drones", []),
            ("Smart Watches", "Smartwatches and fitness trackers", []),
            ("Monitors", "Computer monitors and displays", []),
            ("Landline Phones", "Home phones and cordless phones", []),
            (
                "Laptops",
                "Laptops and notebooks",
                [
                    ("HP", "HP laptops and notebooks"),
                    ("Dell", "Dell laptops and notebooks"),
                    ("Lenovo", "Lenovo laptops and ThinkPad"),
                    ("Asus", "Asus laptops and gaming laptops"),
                    ("Acer", "Acer laptops and notebooks"),
                    ("Apple MacBook", "MacBook Air and MacBook Pro"),
                    ("MSI", "MSI gaming laptops"),
                ],
            ),
            ("Desktops", "Desktop computers and all-in-ones", []),
        ],
    ),
    (
        "Electronic Accessories",
        "Chargers, cables, cases, and other electronic accessories",
        [
            ("Chargers & Cables", "Phone and laptop chargers, USB cables", []),
            ("Cases & Covers", "Phone cases, laptop sleeves, screen protectors", []),
            ("Power Banks", "Portable chargers and power banks", []),
            ("Memory Cards", "SD cards, USB drives, external storage", []),
            (
                "Computer & Laptop Accessories",
                "Accessories for computers and laptops such as bags, cooling pads, chargers and docks",
                [
                    ("Laptop Bags & Sleeves", "Backpacks, sleeves and protective bags for laptops"),
                    ("Laptop Chargers", "Chargers and power adapters for laptops"),
                    ("Cooling Pads", "Laptop cooling pads and external fans"),
                    ("Docking Stations & Hubs", "Docks, USB-C hubs and docking stations"),
                    ("Keyboards & Mice", "External keyboards, mice and combos"),
                    ("Laptop Stands & Risers", "Adjustable laptop stands and risers"),
                    ("Internal SSDs & HDDs", "Internal storage: SSDs and HDDs"),
                    ("External Storage", "External HDDs, SSDs and enclosures"),
                ],
            ),
            (
                "Mobile Phone Accessories",
                "Phone cases, screen protectors, chargers, earphones, mounts and cables",
                [
                    ("Phone Cases", "Protective phone cases and covers"),
                    ("Screen Protectors", "Tempered glass and film protectors"),
                    ("Phone Chargers & Cables", "Wall chargers, car chargers and charging cables"),
                    ("Earphones & Headphones", "Wired and wireless earphones and headphones"),
                    ("Power Banks", "Portable chargers and power banks"),
                    ("Car Mounts & Holders", "Phone holders, magnetic mounts and tripods"),
                    ("Selfie Sticks & Mini Tripods", "Selfie sticks and small tripods for phones"),
                ],
            ),
            (
                "Camera Accessories",
                "Camera bags, tripods, batteries, lenses, filters and lighting",
                [
                    ("Camera Bags & Cases", "Camera bags, shoulder bags and protective cases"),
                    ("Tripods & Monopods", "Tripods, monopods and flexible tripods"),
                    ("Camera Batteries & Chargers", "Spare batteries and chargers"),
                    ("Camera Lenses & Mounts", "Prime and zoom lenses, lens mounts and adapters"),
                    ("Memory Cards (Camera)", "SD cards, microSD and CF for cameras"),
                    ("Flashes & Lighting", "External flashes, studio lighting and LED panels"),
                    ("Filters & Lens Accessories", "Filters, hoods and lens caps"),
                    ("Gimbals & Stabilizers", "Gimbals and stabilizers for video shooting"),
                ],
            ),
        ],
    ),
    (
        "Home Appliances",
        "Air conditioners, washing machines, refrigerators, and other home appliances",
        [
            ("Air Conditioners", "Split and window AC units", []),
            ("Washing Machines", "Front load and top load washing machines", []),
            ("Refrigerators", "Single and double door refrigerators", []),
            ("Kitchen Appliances", "Microwaves, blenders, toasters", []),
        ],
    ),
    (
        "Health & Beauty",
        "Skincare, makeup, fragrances, and personal care products",
        [
            ("Skincare", "Face wash, moisturizers, serums", []),
            ("Makeup", "Lipstick, foundation, eyeshadow", []),
            ("Fragrances", "Perfumes and body sprays", []),
            ("Personal Care", "Hair care, bath & body products", []),
        ],
    ),
    (
        "Mother & Baby",
        "Baby care, feeding, diapers, and maternity products",
        [
            ("Baby Care", "Baby shampoo, lotion, wipes", []),
            ("Feeding", "Bottles, formula, baby food", []),
            ("Diapers", "Disposable and cloth diapers", []),
            ("Maternity", "Maternity clothing and accessories", []),
        ],
    ),
    (
        "Groceries & Pets",
        "Food, beverages, pet supplies, and household essentials",
        [
            ("Food & Beverages", "Snacks, drinks, packaged foods", []),
            ("Pet Supplies", "Pet food, toys, accessories", []),
            ("Household Essentials", "Cleaning supplies, laundry detergent", []),
        ],
    ),
    (
        "Home & Lifestyle",
        "Furniture, home decor, kitchen, bedding, and bath products",
        [
            ("Furniture", "Sofas, tables, chairs, storage", []),
            ("Home Decor", "Wall art, lighting, decorative items", []),
            ("Kitchen & Dining", "Cookware, dinnerware, utensils", []),
            ("Bedding & Bath", "Bed sheets, towels, bathroom accessories", []),
        ],
    ),
    (
        "Women's Fashion",
        "Clothing, shoes, bags, and accessories for women",
        [
            ("Women's Clothing", "Dresses, tops, jeans, traditional wear", []),
            ("Women's Shoes", "Heels, sandals, sneakers, flats", []),
            ("Women's Bags", "Handbags, clutches, backpacks", []),
            ("Women's Accessories", "Scarves, belts, sunglasses", []),
        ],
    ),
    (
        "Men's Fashion",
        "Clothing, shoes, bags, and accessories for men",
        [
            ("Men's Clothing", "Shirts, pants, jeans, traditional wear", []),
            ("Men's Shoes", "Formal shoes, sneakers, sandals", []),
            ("Men's Bags", "Backpacks, messenger bags, wallets", []),
            ("Men's Accessories", "Ties, belts, sunglasses", []),
        ],
    ),
    (
        "Watches, Bags & Jewellery",
        "Watches, handbags, jewelry, and fashion accessories",
        [
            ("Watches", "Men's and women's watches", []),
            ("Bags & Travel", "Luggage, travel bags, organizers", []),
            ("Jewellery", "Necklaces, rings, bracelets, earrings", []),
        ],
    ),
    (
        "Sports & Outdoor",
        "Exercise equipment, outdoor gear, and sports accessories",
        [
            ("Exercise & Fitness", "Gym equipment, yoga mats, weights", []),
            ("Outdoor Recreation", "Camping, hiking, fishing gear", []),
            ("Sports Accessories", "Balls, protective gear, sportswear", []),
        ],
    ),
    (
        "Automotive & Motorbike",
        "Car and motorcycle parts, accessories, and maintenance products",
        [
            ("Car Accessories", "Car covers, seat covers, organizers", []),
            ("Car Parts", "Batteries, filters, spark plugs", []),
            ("Motorbike Accessories", "Helmets, gloves, riding gear", []),
        ],
    ),
]


class _Upserter:
    """Looks up categories by (name, parent_id) and inserts the missing ones."""

    def __init__(self) -> None:
        self.existing: Dict[Tuple[str, Optional[int]], Category] = {
            (c.name, c.parent_id): c for c in Category.query.all()
        }
        self.inserted = 0

    def ensure(self, name: str, description: str, parent: Optional[Category]) -> Category:
        parent_id = parent.id if parent is not None else None
        found = self.existing.get((name, parent_id))
        if found is not None:
            # Left as-is, including an operator's deactivation.
            return found
        category = Category(name=name, description=description, parent_id=parent_id, is_active=True)
        db.session.add(category)
        db.session.flush()
        self.existing[(name, parent_id)] = category
        self.inserted += 1
        return category


def seed_default_categories() -> int:
    """
    Insert any missing categories of the default three-level tree.

    Safe to run repeatedly; returns the number of rows inserted.
    """
    upserter = _Upserter()
    for department, department_desc, subcategories in DEFAULT_TREE:
        top = upserter.ensure(department, department_desc, None)
        for sub_name, sub_desc, leaves in subcategories:
            sub = upserter.ensure(sub_name, sub_desc, top)
            upserter.ensure(OTHER_NAME, OTHER_DESCRIPTION, sub)
            for leaf_name, leaf_desc in leaves:
                upserter.ensure(leaf_name, leaf_desc, sub)
    db.session.commit()
    logger.info(
        "Category seeding complete: %s inserted. Top-level categories: %s",
        upserter.inserted,
        ", ".join(name for name, _, _ in DEFAULT_TREE),
    )
    return upserter.inserted
