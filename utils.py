

# Default catalog used by the seed route and `catalog-sync seed`
SEED_PRODUCTS = [
    {
        "name": "Bubblegum Cloud Slime",
        "description": "A fluffy cloud slime with bubblegum scent that feels like you're touching a cloud!",
        "price": 14.99,
        "inventory": 42,
        "category": "Cloud Slime",
        "featured": True,
        "imagePath": "/images/products/cloud-slime-bubblegum.jpg",
    },
    {
        "name": "Butter Slime - Strawberry",
        "description": "Soft and spreadable butter slime with a delightful strawberry scent.",
        "price": 12.99,
        "inventory": 28,
        "category": "Butter Slime",
        "featured": True,
        "imagePath": "/images/products/butter-slime-strawberry.jpg",
    },
    {
        "name": "Glitter Galaxy Slime",
        "description": "Sparkly slime filled with glitter that resembles a galaxy of stars.",
        "price": 15.99,
        "inventory": 16,
        "category": "Glitter Slime",
        "featured": True,
        "imagePath": "/images/products/glitter-galaxy-slime.jpg",
    },
    {
        "name": "Crunchy Rainbow Slime",
        "description": "Multi-colored slime with crunchy beads for a satisfying texture.",
        "price": 13.99,
        "inventory": 34,
        "category": "Crunchy Slime",
        "featured": False,
        "imagePath": "/images/products/crunchy-rainbow-slime.jpg",
    },
    {
        "name": "Clear Slime - Ocean Breeze",
        "description": "Crystal clear slime with a refreshing ocean breeze scent.",
        "price": 11.99,
        "inventory": 22,
        "category": "Clear Slime",
        "featured": False,
        "imagePath": "/images/products/clear-slime-ocean.jpg",
    },
    {
        "name": "Foam Slime - Cotton Candy",
        "description": "Fluffy foam slime with sweet cotton candy fragrance.",
        "price": 12.99,
        "inventory": 19,
        "category": "Foam Slime",
        "featured": False,
        "imagePath": "/images/products/foam-slime-cotton-candy.jpg",
    },
]


# Storefront API query for one collection's products
SHOPIFY_COLLECTION_QUERY = """
query CollectionProducts($id: ID!, $first: Int!) {
  collection(id: $id) {
    title
    products(first: $first) {
      edges {
        node {
          id
          title
          description
          handle
          tags
          totalInventory
          createdAt
          featuredImage { url altText }
          images(first: 10) { edges { node { url altText } } }
          priceRange { minVariantPrice { amount currencyCode } }
        }
      }
    }
  }
}
"""


# shopify storefront product -> raw catalog record (the normalizer validates it)
def map_shopify_product(node: dict, default_category: str = "Uncategorized"):
    images = [
        {"url": edge["node"]["url"], "altText": edge["node"].get("altText") or node.get("title")}
        for edge in (node.get("images") or {}).get("edges", [])
        if edge.get("node") and edge["node"].get("url")
    ]

    # Primary image first
    featured = node.get("featuredImage") or {}
    if featured.get("url"):
        images = [img for img in images if img["url"] != featured["url"]]
        images.insert(0, {"url": featured["url"], "altText": featured.get("altText") or node.get("title")})

    price = (
        ((node.get("priceRange") or {}).get("minVariantPrice") or {}).get("amount")
    )
    tags = node.get("tags") or []

    return {
        "name": node.get("title"),
        "description": node.get("description") or node.get("title"),
        "price": price,
        "inventory": node.get("totalInventory") or 0,
        "category": tags[0] if tags else default_category,
        "featured": False,
        "images": images,
        "createdAt": node.get("createdAt"),
    }


def map_shopify_collection(response: dict, default_category: str = "Uncategorized"):
    collection = (response.get("data") or {}).get("collection")
    if not collection:
        return None
    return [
        map_shopify_product(edge["node"], default_category)
        for edge in collection["products"]["edges"]
    ]
