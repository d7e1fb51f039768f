"""Picture URI composition for order line snapshots."""

# Host stored in catalog picture references, swapped for the real base URL.
CATALOG_BASE_URL_PLACEHOLDER = "http://catalogbaseurltobereplaced"


class CatalogUriComposer:
    """
    Turns a raw catalog picture reference into the URI stored on an order line.

    Example:
        composer = CatalogUriComposer("https://cdn.example.com")
        composer.compose_pic_uri("http://catalogbaseurltobereplaced/images/1.png")
        # -> "https://cdn.example.com/images/1.png"
        composer.compose_pic_uri("widget.png")
        # -> "https://cdn.example.com/widget.png"
    """

    def __init__(self, base_url: str = ""):
        self.base_url = base_url.rstrip("/")

    def compose_pic_uri(self, picture_ref: str) -> str:
        if not self.base_url or not picture_ref:
            return picture_ref
        if picture_ref.startswith(CATALOG_BASE_URL_PLACEHOLDER):
            return self.base_url + picture_ref[len(CATALOG_BASE_URL_PLACEHOLDER):]
        if "://" in picture_ref:
            return picture_ref
        return f"{self.base_url}/{picture_ref.lstrip('/')}"
