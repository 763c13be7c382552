# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import logging
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from xmlcodec import (
    Attribute,
    AttributeMissingError,
    CollectionLimitError,
    DataElement,
    Element,
    ElementMalformedError,
    ElementMissingError,
    ErrorKind,
    MultiElement,
    Namespace,
    NullParameterError,
    OptionalAttribute,
    OptionalDataElement,
    OptionalElement,
    ParameterRequiredError,
    SchemaRegistry,
    TextValue,
    UnsignedByteAdapter,
    XMLCollection,
    XMLObject,
)
from xmlcodec.dom import parse, to_string


class TestXMLFramework:

    def test_schema(self) -> None:
        test_ns = Namespace('urn:test', prefix='t')

        class AbstractElement(XMLObject, namespace=test_ns):
            pass

        class Node(AbstractElement, name='node'):
            first = Attribute(str)
            second = OptionalAttribute(int, default=0)
            data = DataElement(str)
            note = OptionalDataElement(str, name='note', namespace=Namespace('urn:extra', prefix='ext'))
            content = TextValue(str, default='')

        schema = SchemaRegistry.get_schema(Node)
        assert schema.name == 'node'
        assert schema.namespace == test_ns
        assert schema.prefix == 't'
        assert schema.qualname == 't:node'
        assert schema.tag == '{urn:test}node'
        assert list(schema.attributes) == ['first', 'second']
        assert list(schema.elements) == ['data', 'note']
        assert schema.content is Node.content

        # leaf elements inherit the namespace of the type that declares them, unless they specify one
        assert Node.data.xml_namespace == test_ns
        assert Node.data.xml_qualname == 't:data'
        assert Node.note.xml_namespace == 'urn:extra'
        assert Node.note.xml_qualname == 'ext:note'

        with pytest.raises(TypeError, match=r'.+? does not specify an element name and has no schema'):
            SchemaRegistry.get_schema(AbstractElement)

    def test_xml_object(self) -> None:
        class AbstractElement(XMLObject):
            pass

        with pytest.raises(TypeError, match=r'Cannot instantiate abstract class .+'):
            AbstractElement()

        class RootElement(XMLObject, name='root'):
            attr = Attribute(int)
            data = DataElement(str)

        # When instantiated, all provided arguments must correspond to existing attributes or elements
        with pytest.raises(TypeError, match=r'got an unexpected keyword argument .+'):
            RootElement(other=None)

        # Mandatory fields can be left unset until the element is built
        root = RootElement(attr=1)
        assert root.attr == 1
        assert root.data is None
        assert root.local_name == 'root'
        assert root.namespace_uri is None
        assert root.prefix is None

        with pytest.raises(ElementMalformedError, match=r'The element does not match the .+? element name and namespace'):
            RootElement.from_string('<other/>')

        root = RootElement.from_string('<root attr="1"><data>text</data></root>')
        assert root.attr == 1
        assert root.data == 'text'

    def test_fields(self) -> None:
        class RootElement(XMLObject, name='root'):
            m_attr = Attribute(int, adapter=UnsignedByteAdapter)
            o_attr = OptionalAttribute(str, default='default')

        root = RootElement(m_attr=1)
        assert root.o_attr == 'default'

        with pytest.raises(TypeError, match=rf'the {RootElement.m_attr.name!r} attribute must be of type int'):
            root.m_attr = ''  # pyright: ignore[reportAttributeAccessIssue]

        with pytest.raises(AttributeError, match=rf'mandatory attribute {RootElement.m_attr.name!r} cannot be deleted'):
            del root.m_attr

        root.o_attr = 'other'
        assert root.o_attr == 'other'
        del root.o_attr
        assert root.o_attr == 'default'

        # an optional field set to None takes its default, the same value an element without it loads as
        root.o_attr = None
        assert root.o_attr == 'default'
        assert RootElement(m_attr=1, o_attr=None).o_attr == 'default'
        assert RootElement.from_string(root.to_string()).o_attr == 'default'

        # values are only checked against the adapter when the element is built
        root.m_attr = 256
        with pytest.raises(ValueError, match=r'invalid value .+? for unsigned 8-bit integer'):
            root.get_xml()


class TestSerialize:

    def test_default_omission(self) -> None:
        class Sig(XMLObject, name='Sig'):
            algorithm = Attribute(str, name='Algorithm')
            value = OptionalDataElement(str, name='Value', default='')

        sig = Sig(algorithm='rsa', value='')
        assert sig.to_string() == '<Sig Algorithm="rsa"/>'

        sig.value = 'abc'
        assert sig.to_string() == '<Sig Algorithm="rsa"><Value>abc</Value></Sig>'

        with pytest.raises(AttributeMissingError) as exc_info:
            Sig(value='').get_xml()
        assert exc_info.value.kind is ErrorKind.ATTRIBUTE_MISSING
        assert exc_info.value.names == ('Algorithm', 'Sig')

    def test_required_fields_are_always_written(self) -> None:
        class Point(XMLObject, name='point'):
            x = Attribute(int)
            y = OptionalAttribute(int, default=0)
            z = OptionalAttribute(int, default=None)

        point = Point(x=0, y=0)
        assert point.to_string() == '<point x="0"/>'

        point.y = 1
        point.z = 0
        assert point.to_string() == '<point x="0" y="1" z="0"/>'

    def test_missing_elements(self) -> None:
        class Child(XMLObject, name='child'):
            pass

        class Parent(XMLObject, name='parent'):
            name = DataElement(str)
            child = Element(Child)

        with pytest.raises(ElementMissingError) as exc_info:
            Parent(child=Child()).get_xml()
        assert exc_info.value.names == ('name', 'parent')

        with pytest.raises(ElementMissingError) as exc_info:
            Parent(name='test').get_xml()
        assert exc_info.value.names == ('child', 'parent')

        assert Parent(name='test', child=Child()).to_string() == '<parent><name>test</name><child/></parent>'

    def test_namespaces(self) -> None:
        test_ns = Namespace('urn:test', prefix=None)
        attr_ns = 'urn:attributes'

        class Point(XMLObject, name='point', namespace=test_ns):
            x = OptionalAttribute(int, default=0)
            lang = OptionalAttribute(str, namespace=attr_ns)
            label = OptionalDataElement(str)

        point = Point(x=1, label='a')
        assert point.to_string() == '<point xmlns="urn:test" x="1"><label>a</label></point>'

        point.lang = 'en'
        element = point.get_xml()
        assert element.tag == '{urn:test}point'
        assert element.get(f'{{{attr_ns}}}lang') == 'en'
        assert element[0].tag == '{urn:test}label'

        point.prefix = 'p'
        element = point.get_xml()
        assert element.prefix == 'p'
        assert element[0].prefix == 'p'

    def test_leaf_element_conversion(self) -> None:
        class Record(XMLObject, name='record'):
            created = DataElement(datetime)
            payload = DataElement(bytes)
            active = OptionalDataElement(bool, default=False)
            amount = OptionalDataElement(Decimal, default=None)

        record = Record(created=datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC), payload=b'test', active=True, amount=Decimal('1.50'))
        element = record.get_xml()
        assert [child.text for child in element] == ['2024-01-02T03:04:05+00:00', 'dGVzdA==', 'true', '1.50']

    def test_text_value(self) -> None:
        class Note(XMLObject, name='note'):
            lang = OptionalAttribute(str, default='en')
            text = TextValue(str, default='')

        class Digest(XMLObject, name='digest'):
            value = TextValue(bytes, required=True)

        assert Note().to_string() == '<note/>'
        assert Note(text='hello', lang='fr').to_string() == '<note lang="fr">hello</note>'
        assert Digest(value=b'test').to_string() == '<digest>dGVzdA==</digest>'

        with pytest.raises(ElementMissingError):
            Digest().get_xml()

    def test_on_get_xml(self) -> None:
        class Stamped(XMLObject, name='stamped'):
            name = Attribute(str)

            def on_get_xml(self, element) -> None:
                element.set('stamp', 'yes')

        assert Stamped(name='x').to_string() == '<stamped name="x" stamp="yes"/>'


class TestDeserialize:

    def test_attributes(self) -> None:
        class RootElement(XMLObject, name='root'):
            m_attr = Attribute(int, adapter=UnsignedByteAdapter)
            o_attr = OptionalAttribute(int, default=7)

        with pytest.raises(AttributeMissingError, match=r"Missing mandatory attribute 'm_attr' from 'root'"):
            RootElement.from_string('<root/>')

        with pytest.raises(ValueError, match=r"Invalid value for attribute 'm_attr' from 'root'"):
            RootElement.from_string('<root m_attr="text"/>')

        with pytest.raises(ValueError, match=r"Invalid value for attribute 'm_attr' from 'root'"):
            RootElement.from_string('<root m_attr="256"/>')

        root = RootElement.from_string('<root m_attr="1"/>')
        assert root.m_attr == 1
        assert root.o_attr == 7

        root = RootElement.from_string('<root m_attr="1" o_attr="3"/>')
        assert root.o_attr == 3

    def test_elements(self) -> None:
        class Node(XMLObject, name='node'):
            name = Attribute(str)

        class Point(XMLObject, name='point'):
            x = OptionalAttribute(int, default=0)
            y = OptionalAttribute(int, default=0)

        class RootElement(XMLObject, name='root'):
            node = Element(Node)
            point = OptionalElement(Point)
            size = OptionalDataElement(int, default=10)
            title = DataElement(str)

        with pytest.raises(ElementMissingError) as exc_info:
            RootElement.from_string('<root><title>x</title></root>')
        assert exc_info.value.kind is ErrorKind.ELEMENT_MISSING
        assert exc_info.value.names == ('node', 'root')

        with pytest.raises(ElementMissingError) as exc_info:
            RootElement.from_string('<root><node name="N7"/></root>')
        assert exc_info.value.names == ('title', 'root')

        with pytest.raises(ValueError, match=r"Invalid value for element 'size' from 'root'"):
            RootElement.from_string('<root><node name="N7"/><size/><title>x</title></root>')

        root = RootElement.from_string('<root><node name="N7"/><title>x</title></root>')
        assert root.node.name == 'N7'
        assert root.point is None
        assert root.size == 10
        assert root.title == 'x'

        # children are found in any order, the first matching one is used
        root = RootElement.from_string('<root><title>x<b>y</b></title><point x="1" y="-1"/><node name="N1"/><node name="N2"/><size>3</size></root>')
        assert root.node.name == 'N1'
        assert root.point is not None
        assert root.point.x == 1
        assert root.point.y == -1
        assert root.size == 3
        assert root.title == 'xy'

    def test_qualified_names(self) -> None:
        test_ns = Namespace('urn:test', prefix=None)

        class Child(XMLObject, name='child', namespace=test_ns):
            pass

        class RootElement(XMLObject, name='root', namespace=test_ns):
            child = OptionalElement(Child)
            value = OptionalDataElement(str)

        with pytest.raises(ElementMalformedError) as exc_info:
            RootElement.from_string('<root/>')
        assert exc_info.value.kind is ErrorKind.ELEMENT_MALFORMED
        assert exc_info.value.names == ('root',)

        with pytest.raises(ElementMalformedError):
            RootElement.from_string('<root xmlns="urn:other"/>')

        with pytest.raises(ElementMalformedError):
            RootElement.from_string('<other xmlns="urn:test"/>')

        # children that are in a different namespace are ignored
        root = RootElement.from_string('<t:root xmlns:t="urn:test" xmlns:o="urn:other"><o:child/><o:value>x</o:value></t:root>')
        assert root.child is None
        assert root.value is None
        assert root.prefix == 't'

        root = RootElement.from_string('<root xmlns="urn:test"><child/><value>x</value></root>')
        assert root.child is not None
        assert root.value == 'x'
        assert root.prefix == ''

    def test_missing_element_argument(self) -> None:
        class RootElement(XMLObject, name='root'):
            pass

        with pytest.raises(ParameterRequiredError) as exc_info:
            RootElement().load_xml(None)  # pyright: ignore[reportArgumentType]
        assert exc_info.value.kind is ErrorKind.PARAM_REQUIRED
        assert exc_info.value.name == 'element'

    def test_text_value(self) -> None:
        class Flag(XMLObject, name='flag'):
            value = TextValue(bool, required=True)

        class Note(XMLObject, name='note'):
            text = TextValue(str, default='none')

        with pytest.raises(ValueError, match=r"Invalid value for text value 'flag' from 'flag'"):
            Flag.from_string('<flag/>')

        with pytest.raises(ValueError, match=r"Invalid value for text value 'flag' from 'flag'"):
            Flag.from_string('<flag>False</flag>')

        assert Flag.from_string('<flag> true </flag>').value is True
        assert Flag.from_string('<flag>0</flag>').value is False
        assert Note.from_string('<note/>').text == 'none'
        assert Note.from_string('<note>text</note>').text == 'text'

        # only the text directly under the element is used, not the text of its child elements
        assert Note.from_string('<note>a<b>x</b>c</note>').text == 'ac'

    def test_factory(self) -> None:
        class Child(XMLObject, name='child'):
            pass

        class SpecialChild(Child):
            pass

        class Parent(XMLObject, name='parent'):
            child = Element(Child, factory=SpecialChild)

        parent = Parent.from_string('<parent><child/></parent>')
        assert type(parent.child) is SpecialChild

    def test_on_load_xml(self) -> None:
        class Extensible(XMLObject, name='extensible'):
            name = Attribute(str)

            def on_load_xml(self, element) -> None:
                self.extra = [child.tag for child in element]

        extensible = Extensible.from_string('<extensible name="x"><a/><b/></extensible>')
        assert extensible.extra == ['a', 'b']


class TestRoundTrip:

    def test_round_trip(self) -> None:
        test_ns = Namespace('urn:test', prefix='t')

        class Location(XMLObject, name='location', namespace=test_ns):
            latitude = Attribute(float)
            longitude = Attribute(float)

        class Event(XMLObject, name='event', namespace=test_ns):
            id = Attribute(str, name='Id')
            priority = OptionalAttribute(int, default=0)
            start = DataElement(datetime)
            attachment = OptionalDataElement(bytes)
            public = OptionalDataElement(bool, default=True)
            location = OptionalElement(Location)
            description = OptionalDataElement(str, default='')

        event = Event(
            id='e1',
            priority=2,
            start=datetime(2024, 5, 6, 7, 8, 9, tzinfo=UTC),
            attachment=b'\x00\x01\x02',
            public=False,
            location=Location(latitude=44.43, longitude=26.1),
            description='meeting',
        )
        loaded = Event.from_string(event.to_string())

        assert loaded.id == event.id
        assert loaded.priority == event.priority
        assert loaded.start == event.start
        assert loaded.attachment == event.attachment
        assert loaded.public is event.public
        assert loaded.location is not None
        assert loaded.location.latitude == event.location.latitude
        assert loaded.location.longitude == event.location.longitude
        assert loaded.description == event.description
        assert loaded.prefix == 't'

    def test_unqualified_children_of_default_namespace(self) -> None:
        class Child(XMLObject, name='child'):
            pass

        class Parent(XMLObject, name='parent', namespace=Namespace('urn:a', prefix=None)):
            label = OptionalDataElement(str)
            value = OptionalDataElement(str, namespace='')
            child = OptionalElement(Child)

        assert Parent(label='l').to_string() == '<parent xmlns="urn:a"><label>l</label></parent>'

        # children without a namespace would be captured by a default namespace, so a prefix is used instead
        parent = Parent(label='l', value='v', child=Child())
        element = parent.get_xml()
        assert element.tag == '{urn:a}parent'
        assert element.prefix == 'ns0'
        assert [child.tag for child in element] == ['{urn:a}label', 'value', 'child']
        assert parent.get_xml() is element

        loaded = Parent.from_string(parent.to_string())
        assert loaded.label == 'l'
        assert loaded.value == 'v'
        assert loaded.child is not None
        assert loaded.prefix == 'ns0'

    def test_foreign_namespace_children(self) -> None:
        class Child(XMLObject, name='child', namespace=Namespace('urn:b', prefix=None)):
            value = OptionalDataElement(str)

        class Parent(XMLObject, name='parent', namespace=Namespace('urn:a', prefix='a')):
            child = Element(Child)
            note = OptionalDataElement(str)

        parent = Parent(child=Child(value='x'), note='n')
        text = parent.to_string()
        assert text == '<a:parent xmlns:a="urn:a"><child xmlns="urn:b"><value>x</value></child><a:note>n</a:note></a:parent>'

        loaded = Parent.from_string(text)
        assert loaded.child.value == 'x'
        assert loaded.note == 'n'

    def test_rebuild_after_loading_unprefixed_document(self) -> None:
        class Child(XMLObject, name='child'):
            pass

        class Parent(XMLObject, name='parent', namespace=Namespace('urn:a', prefix='a')):
            label = OptionalDataElement(str)
            child = OptionalElement(Child)

        parent = Parent.from_string('<parent xmlns="urn:a"><label>x</label></parent>')
        assert parent.prefix == ''

        parent.child = Child()
        loaded = Parent.from_string(parent.to_string())
        assert loaded.label == 'x'
        assert loaded.child is not None


class TestChangeTracking:

    def test_idempotence(self) -> None:
        class Child(XMLObject, name='child'):
            value = OptionalAttribute(str)

        class Parent(XMLObject, name='parent'):
            name = OptionalAttribute(str)
            child = OptionalElement(Child)

        parent = Parent(name='p', child=Child(value='a'))
        assert parent.has_changed()

        element = parent.get_xml()
        assert not parent.has_changed()
        assert parent.get_xml() is element

        # setting a field to the value it already has is not a change
        parent.name = 'p'
        assert parent.get_xml() is element

    def test_changes(self) -> None:
        class Child(XMLObject, name='child'):
            value = OptionalAttribute(str)

        class Parent(XMLObject, name='parent'):
            name = OptionalAttribute(str)
            child = OptionalElement(Child)

        parent = Parent(name='p', child=Child(value='a'))
        element = parent.get_xml()
        child_element = element[0]

        # changing a nested object rebuilds both the nested object and its parent
        assert parent.child is not None
        parent.child.value = 'b'
        assert parent.has_changed()
        new_element = parent.get_xml()
        assert new_element is not element
        assert new_element[0] is not child_element
        assert new_element[0].get('value') == 'b'

        # changing the parent reuses the unchanged nested element
        child_element = new_element[0]
        parent.name = 'q'
        new_element = parent.get_xml()
        assert new_element[0] is child_element
        assert to_string(new_element) == '<parent name="q"><child value="b"/></parent>'

        # removing the nested object
        parent.child = None
        assert to_string(parent.get_xml()) == '<parent name="q"/>'

    def test_loaded_element_is_reused(self) -> None:
        class Child(XMLObject, name='child'):
            value = OptionalAttribute(str)

        class Parent(XMLObject, name='parent'):
            child = Element(Child)

        document = parse('<parent><child value="a"/></parent>')
        parent = Parent.from_xml(document.getroot())
        assert not parent.has_changed()
        assert parent.get_xml() is document.getroot()

        parent.child.value = 'b'
        assert parent.get_xml() is not document.getroot()
        assert parent.to_string() == '<parent><child value="b"/></parent>'

    def test_logging(self, caplog: pytest.LogCaptureFixture) -> None:
        class RootElement(XMLObject, name='root'):
            pass

        root = RootElement()
        with caplog.at_level(logging.DEBUG, logger='xmlcodec.codec'):
            root.get_xml()
            root.get_xml()
        assert [record.getMessage() for record in caplog.records] == ["Built the 'root' element", "Reusing the cached 'root' element"]


class TestInstanceLookups:

    def test_unbound(self) -> None:
        class RootElement(XMLObject, name='root'):
            pass

        root = RootElement()
        with pytest.raises(NullParameterError) as exc_info:
            root.get_child('item')
        assert exc_info.value.kind is ErrorKind.NULL_PARAM
        assert exc_info.value.type_name == 'root'

        with pytest.raises(NullParameterError):
            root.get_attribute('name')

    def test_bound(self) -> None:
        class RootElement(XMLObject, name='root', namespace='urn:a'):
            pass

        root = RootElement.from_string('<root xmlns="urn:a" xmlns:b="urn:b" name="r"><item id="1"/><b:item id="2"/><item id="3"><leaf/></item></root>')

        assert [item.get('id') for item in root.get_children('item')] == ['1', '3']
        assert [item.get('id') for item in root.get_children('item', 'urn:b')] == ['2']
        assert root.get_child('item').get('id') == '1'
        assert root.get_child('missing', required=False) is None
        assert root.get_first_child('item').get('id') == '1'
        assert root.get_first_child('item', 'urn:b').get('id') == '2'
        assert root.get_element('leaf') is not None
        assert root.get_element('b:item').get('id') == '2'
        assert root.get_attribute('name') == 'r'
        assert root.get_attribute('other', 'default', required=False) == 'default'
        assert root.get_element_by_id(root.get_xml(), '3') is root.get_children('item')[1]

        with pytest.raises(ElementMissingError, match=r"Missing mandatory element 'missing' from 'root'"):
            root.get_child('missing')

        with pytest.raises(AttributeMissingError, match=r"Missing mandatory attribute 'other' from 'root'"):
            root.get_attribute('other')

    def test_create_element(self) -> None:
        class RootElement(XMLObject, name='root', namespace=Namespace('urn:a', prefix='a')):
            pass

        root = RootElement()
        assert to_string(root.create_document()) == '<a:root xmlns:a="urn:a"/>'

        element = root.create_element()
        assert element.tag == '{urn:a}root'
        assert element.prefix == 'a'

        element = root.create_element(local_name='other', namespace='urn:b', prefix='')
        assert element.tag == '{urn:b}other'
        assert element.prefix is None


class TestCollections:

    def test_collection(self) -> None:
        class Item(XMLObject, name='item'):
            value = Attribute(int)

        class Other(XMLObject, name='other'):
            pass

        class ItemList(XMLCollection[Item], name='items', item_type=Item):
            pass

        class Holder(XMLObject, name='holder'):
            items = Element(ItemList)

        first, second = Item(value=1), Item(value=2)
        items = ItemList([first, second])
        assert len(items) == 2
        assert list(items) == [first, second]
        assert items[1] is second
        assert first in items
        assert Item(value=1) not in items

        with pytest.raises(TypeError, match=r'item must be of type .+'):
            items.add(Other())  # pyright: ignore[reportArgumentType]

        with pytest.raises(ValueError, match=r'.+? is not in ItemList'):
            items.remove(Item(value=3))

        holder = Holder(items=items)
        assert holder.to_string() == '<holder><items><item value="1"/><item value="2"/></items></holder>'

        holder = Holder.from_string('<holder><items><item value="3"/><other/><item value="4"/></items></holder>')
        assert [item.value for item in holder.items] == [3, 4]

        element = holder.get_xml()
        assert holder.get_xml() is element

        holder.items.remove(holder.items[0])
        assert holder.to_string() == '<holder><items><item value="4"/></items></holder>'

        del holder.items[0]
        holder.items += [Item(value=5)]
        assert holder.to_string() == '<holder><items><item value="5"/></items></holder>'

        holder.items.clear()
        assert holder.to_string() == '<holder><items/></holder>'

    def test_flattened_collection(self) -> None:
        class Item(XMLObject, name='item'):
            value = Attribute(int)

        class Items(XMLCollection[Item], item_type=Item):
            pass

        class Box(XMLObject, name='box'):
            label = OptionalAttribute(str)
            items = MultiElement(Items, min_occurs=1, max_occurs=3)

        box = Box()
        assert len(box.items) == 0

        with pytest.raises(CollectionLimitError) as exc_info:
            box.get_xml()
        assert exc_info.value.kind is ErrorKind.COLLECTION_LIMIT
        assert exc_info.value.names == ('item', 'box')

        box.items.add(Item(value=1))
        assert box.to_string() == '<box><item value="1"/></box>'
        assert box.get_xml() is box.get_xml()

        box.items += [Item(value=2), Item(value=3), Item(value=4)]
        with pytest.raises(CollectionLimitError):
            box.get_xml()

        box.items = Items([Item(value=5), Item(value=6)])
        assert box.to_string() == '<box><item value="5"/><item value="6"/></box>'

        # the collection does not change, but its parent does
        box.label = 'x'
        assert box.to_string() == '<box label="x"><item value="5"/><item value="6"/></box>'

        # changing an item rebuilds the parent
        box.items[0].value = 7
        assert box.to_string() == '<box label="x"><item value="7"/><item value="6"/></box>'

    def test_flattened_collection_loading(self) -> None:
        class Item(XMLObject, name='item'):
            value = Attribute(int)

        class Items(XMLCollection[Item], item_type=Item):
            pass

        class Box(XMLObject, name='box'):
            items = MultiElement(Items, min_occurs=1, max_occurs=3)

        with pytest.raises(CollectionLimitError):
            Box.from_string('<box/>')

        with pytest.raises(CollectionLimitError):
            Box.from_string('<box><item value="1"/><item value="2"/><item value="3"/><item value="4"/></box>')

        document = parse('<box><item value="1"/><other/><item value="2"/></box>')
        box = Box.from_xml(document.getroot())
        assert [item.value for item in box.items] == [1, 2]
        assert not box.has_changed()
        assert box.get_xml() is document.getroot()

        box.items.add(Item(value=3))
        assert box.has_changed()
        assert box.to_string() == '<box><item value="1"/><item value="2"/><item value="3"/></box>'

    def test_declarations(self) -> None:
        class Item(XMLObject, name='item'):
            pass

        class AbstractItem(XMLObject):
            pass

        class Items(XMLCollection[Item], item_type=Item):
            pass

        with pytest.raises(ValueError, match=r'invalid occurrence limits: .+'):
            MultiElement(Items, min_occurs=2, max_occurs=1)

        with pytest.raises(TypeError, match=r'.+? must be a collection that specifies its item type'):
            MultiElement(Item)  # pyright: ignore[reportArgumentType]

        with pytest.raises(TypeError, match=r'.+? must specify an element name to be usable as element type'):
            Element(AbstractItem)

        with pytest.raises(TypeError, match=r'.+? must specify an element name to be usable as item type'):
            class BadItems(XMLCollection[AbstractItem], item_type=AbstractItem):  # noqa: F841
                pass

        with pytest.raises(TypeError, match=r'Cannot instantiate abstract class .+'):
            XMLCollection()
