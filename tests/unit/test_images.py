from src.adapters.images import PLACEHOLDER_IMAGE, ImageResolver


class TestLocalImages:
    def test_site_relative_path_kept(self):
        assert ImageResolver().resolve("/images/processors/7800x3d.jpg") == (
            "/images/processors/7800x3d.jpg"
        )

    def test_missing_leading_slash_added(self):
        assert ImageResolver().resolve("images/a.jpg") == "/images/a.jpg"

    def test_placeholder(self):
        assert ImageResolver().resolve(None) == PLACEHOLDER_IMAGE
        assert ImageResolver(placeholder="/p.png").resolve("") == "/p.png"

    def test_absolute_url_untouched(self):
        url = "https://cdn.example.com/x.jpg"
        assert ImageResolver(cloud_name="demo").resolve(url) == url

    def test_optimized_without_cdn_falls_back(self):
        assert ImageResolver().resolve_optimized("/images/a.jpg", width=300) == "/images/a.jpg"


class TestCloudinary:
    def test_public_id(self):
        resolver = ImageResolver(cloud_name="demo")
        assert resolver.public_id("/images/processors/7800x3d.jpg") == (
            "onlypc-images/processors/7800x3d"
        )

    def test_resolve(self):
        assert ImageResolver(cloud_name="demo").resolve("/images/cases/h5.png") == (
            "https://res.cloudinary.com/demo/image/upload/f_auto,q_auto/onlypc-images/cases/h5"
        )

    def test_optimized_transformation(self):
        url = ImageResolver(cloud_name="demo").resolve_optimized(
            "/images/cases/h5.png", width=400, height=300, quality=80
        )
        assert "/f_auto,w_400,h_300,c_fill,q_80/" in url

    def test_optimized_default_quality(self):
        url = ImageResolver(cloud_name="demo").resolve_optimized("/images/cases/h5.png")
        assert "/f_auto,q_auto/" in url
