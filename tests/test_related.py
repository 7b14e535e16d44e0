"""Tests for the related-code finder."""

from deadwood.analysis.related import RelatedCodeFinder
from deadwood.deletion.editor import apply_edits
from deadwood.models.declaration import Declaration, DeclarationKind
from deadwood.models.deletion import PartialLineDeletion

POINT = """struct Point: Codable {
    let a: Int
    let b: Int
    let c: Int

    enum CodingKeys: String, CodingKey {
        case a, b, c
    }

    init(a: Int, b: Int, c: Int) {
        self.a = a
        self.b = b
        self.c = c
    }
}
"""

SERVICE = """final class Service {
    let client: Client
    let cache: Cache
    init(
        client: Client,
        cache: Cache
    ) {
        self.client = client
        self.cache = cache
    }
}
"""

USER = """struct User: Codable {
    let name: String
    let age: Int

    func encode(to encoder: Encoder) throws {
        var container = encoder.container(keyedBy: CodingKeys.self)
        try container.encode(name, forKey: .name)
        try container.encode(age, forKey: .age)
    }

    init(from decoder: Decoder) throws {
        let container = try decoder.container(keyedBy: CodingKeys.self)
        name = try container.decode(String.self, forKey: .name)
        age = try container.decode(Int.self, forKey: .age)
    }
}
"""


def _property(name: str, line: int, parent: str, file: str = "Model.swift") -> Declaration:
    return Declaration(
        name=name, kind=DeclarationKind.VARIABLE, file=file, line=line, parent_type=parent
    )


def _apply(text: str, related) -> str:
    whole = set()
    partials = []
    for item in related:
        if item.partial is not None:
            partials.append(item.partial)
        else:
            whole |= item.lines
    return apply_edits(text, whole, partials).text


class TestInitAssignments:
    """Tests for constructor fragments."""

    def test_middle_parameter(self):
        """A middle parameter should be cut with its trailing separator."""
        related = RelatedCodeFinder().find(_property("b", 3, "Point"), POINT)

        partials = [r.partial for r in related if r.partial is not None]
        assert PartialLineDeletion(10, 18, 26) in partials
        assert any(r.start_line == 12 and r.partial is None for r in related)

        edited = _apply(POINT, related).split("\n")
        assert "    init(a: Int, c: Int) {" in edited
        assert "        self.b = b" not in edited

    def test_last_parameter(self):
        """The last parameter should take the preceding separator."""
        related = RelatedCodeFinder().find(_property("c", 4, "Point"), POINT)

        assert "    init(a: Int, b: Int) {" in _apply(POINT, related).split("\n")

    def test_first_parameter(self):
        """The first parameter should take the following separator and space."""
        related = RelatedCodeFinder().find(_property("a", 2, "Point"), POINT)

        assert "    init(b: Int, c: Int) {" in _apply(POINT, related).split("\n")

    def test_assignment_description(self):
        """Assignments should describe the statement they remove."""
        related = RelatedCodeFinder().find(_property("b", 3, "Point"), POINT)

        descriptions = [r.description for r in related]
        assert "Init assignment: self.b = b" in descriptions
        assert "Init parameter 'b' only used for this property" in descriptions

    def test_parameter_used_elsewhere_kept(self):
        """A parameter the body uses twice should stay."""
        text = (
            "struct Box {\n"
            "    var size: Int\n"
            "    init(size: Int) {\n"
            "        self.size = size\n"
            "        print(size)\n"
            "    }\n"
            "}\n"
        )

        related = RelatedCodeFinder().find(_property("size", 2, "Box"), text)

        assert [(r.start_line, r.partial) for r in related] == [(4, None)]

    def test_own_line_last_parameter(self):
        """A last parameter on its own line should also drop the stranded comma."""
        related = RelatedCodeFinder().find(_property("cache", 3, "Service"), SERVICE)

        assert [r.start_line for r in related] == [5, 6, 9]
        assert related[0].partial == PartialLineDeletion(5, 23, 24)
        assert related[0].description.endswith("(separator)")

        edited = _apply(SERVICE, related).split("\n")
        assert "        client: Client" in edited
        assert "        self.cache = cache" not in edited

    def test_own_line_first_parameter(self):
        """A first parameter on its own line should go as a whole line."""
        related = RelatedCodeFinder().find(_property("client", 2, "Service"), SERVICE)

        assert [(r.start_line, r.partial) for r in related] == [(5, None), (8, None)]

    def test_wrapped_last_parameter_keeps_signature(self):
        """A last parameter wrapping onto the next line should be cut at both ends."""
        text = (
            "struct Table {\n"
            "    let a: Int\n"
            "    let b: [String: Int]\n"
            "\n"
            "    init(a: Int, b: [String:\n"
            "        Int]) {\n"
            "        self.a = a\n"
            "        self.b = b\n"
            "    }\n"
            "}\n"
        )

        related = RelatedCodeFinder().find(_property("b", 3, "Table"), text)

        assert all(r.partial is not None for r in related if r.start_line in (5, 6))
        edited = _apply(text, related).split("\n")
        assert "    init(a: Int" in edited
        assert "        ) {" in edited
        assert "        self.a = a" in edited
        assert "        self.b = b" not in edited

    def test_wrapped_middle_parameter_keeps_neighbours(self):
        """A wrapped middle parameter should leave the parameters around it."""
        text = (
            "struct Table {\n"
            "    let a: Int\n"
            "    let b: [String: Int]\n"
            "    let c: Int\n"
            "\n"
            "    init(a: Int, b: [String:\n"
            "        Int], c: Int) {\n"
            "        self.a = a\n"
            "        self.b = b\n"
            "        self.c = c\n"
            "    }\n"
            "}\n"
        )

        related = RelatedCodeFinder().find(_property("b", 3, "Table"), text)

        edited = _apply(text, related).split("\n")
        assert "    init(a: Int," in edited
        assert "        c: Int) {" in edited
        assert "        self.b = b" not in edited


class TestCodingKeys:
    """Tests for serialization key cases."""

    def test_element_of_multi_case(self):
        """One name in a multi-element case should be cut by column."""
        related = RelatedCodeFinder().find(_property("b", 3, "Point"), POINT)

        assert PartialLineDeletion(7, 17, 20) in [r.partial for r in related]
        assert "        case a, c" in _apply(POINT, related).split("\n")

    def test_single_case_line(self):
        """A case naming only the property should drop its line."""
        text = (
            "struct Item: Codable {\n"
            "    let id: Int\n"
            "    let title: String\n"
            "    enum CodingKeys: String, CodingKey {\n"
            "        case id\n"
            "        case title = \"name\"\n"
            "    }\n"
            "}\n"
        )

        related = RelatedCodeFinder().find(_property("title", 3, "Item"), text)

        assert [(r.start_line, r.partial) for r in related] == [(6, None)]
        assert related[0].description == "CodingKeys case 'title'"


class TestCoderCalls:
    """Tests for encode and decode calls."""

    def test_encoder_and_decoder(self):
        """Calls keyed by the property should be found."""
        related = RelatedCodeFinder().find(_property("age", 3, "User"), USER)

        assert [r.start_line for r in related] == [8, 14]
        assert related[0].description == "Encoder call for 'age'"

        edited = _apply(USER, related)
        assert "forKey: .age" not in edited
        assert "forKey: .name" in edited

    def test_custom_receiver(self):
        """Only configured receivers should be matched."""
        text = USER.replace("container", "values")
        declaration = _property("age", 3, "User")

        default = RelatedCodeFinder().find(declaration, text)
        custom = RelatedCodeFinder(coder_receivers=frozenset({"values"})).find(declaration, text)

        assert not any(r.description.startswith("Encoder") for r in default)
        assert any(r.description == "Encoder call for 'age'" for r in custom)


class TestExtensions:
    """Tests for extension blocks of unused types."""

    TEXT = (
        "struct Legacy {}\n"
        "\n"
        "extension Legacy {\n"
        "    func old() {}\n"
        "}\n"
        "\n"
        "extension Legacy: Equatable {}\n"
        "extension LegacyTwo {}\n"
    )

    def test_extensions_in_same_file(self):
        """Every extension of the type, and only that type, should be found."""
        declaration = Declaration("Legacy", DeclarationKind.TYPE, "Legacy.swift", 1)

        related = RelatedCodeFinder().find(declaration, self.TEXT)

        assert [(r.start_line, r.end_line) for r in related] == [(3, 5), (7, 7)]
        assert related[0].description == "Extension of 'Legacy'"

    def test_sibling_files(self, tmp_path):
        """With sibling search on, extensions in neighbouring files are found."""
        main = tmp_path / "Legacy.swift"
        main.write_text("struct Legacy {}\n")
        (tmp_path / "Legacy+Extras.swift").write_text("extension Legacy {\n    func x() {}\n}\n")
        declaration = Declaration("Legacy", DeclarationKind.TYPE, str(main), 1)

        related = RelatedCodeFinder(search_siblings=True).find(declaration)

        assert [(r.file, r.start_line, r.end_line) for r in related] == [
            (str(tmp_path / "Legacy+Extras.swift"), 1, 3)
        ]


class TestNothingCoupled:
    """Tests for declarations with no related code."""

    def test_function_has_none(self):
        """Functions have no related code."""
        declaration = Declaration("helper", DeclarationKind.FUNCTION, "A.swift", 2)

        assert RelatedCodeFinder().find(declaration, POINT) == []

    def test_property_without_fragments(self):
        """A property with no init, keys or coder calls has nothing related."""
        text = "struct Plain {\n    var flag = false\n}\n"

        assert RelatedCodeFinder().find(_property("flag", 2, "Plain"), text) == []
