from schemas import Product, ProductImage


def resolve_references(product: Product) -> Product:
    """
    Make the legacy imagePath field agree with the image list.
    The image list is the source of truth; an empty list means "no image"
    and callers apply their own placeholder.
    """
    image_path = (product.image_path or "").strip() or None

    if product.images:
        primary = product.images[0].url
        if product.image_path == primary:
            return product
        return product.model_copy(update={"image_path": primary})

    if image_path:
        return product.model_copy(update={
            "image_path": image_path,
            "images": [ProductImage(url=image_path, alt_text=product.name)],
        })

    if product.image_path is None:
        return product
    return product.model_copy(update={"image_path": None})
