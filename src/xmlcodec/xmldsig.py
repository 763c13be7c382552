# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

"""The core of the XML Signature syntax (https://www.w3.org/TR/xmldsig-core1/) declared as XML objects"""

from . import (
    Attribute,
    DataElement,
    Element,
    MultiElement,
    Namespace,
    OptionalAttribute,
    OptionalDataElement,
    OptionalElement,
    PositiveIntegerAdapter,
    TextValue,
    XMLCollection,
    XMLObject,
)

__all__ = (  # noqa: RUF022
    'ns_dsig',
    'Signature',
    'SignedInfo',
    'CanonicalizationMethod',
    'SignatureMethod',
    'Reference',
    'References',
    'Transforms',
    'Transform',
    'DigestMethod',
    'SignatureValue',
    'KeyInfo',
    'KeyName',
    'KeyNames',
)


ns_dsig = Namespace('http://www.w3.org/2000/09/xmldsig#', prefix='ds')


class DSigElement(XMLObject, namespace=ns_dsig):
    pass


class CanonicalizationMethod(DSigElement, name='CanonicalizationMethod'):
    algorithm: Attribute[str] = Attribute(str, name='Algorithm')


class SignatureMethod(DSigElement, name='SignatureMethod'):
    algorithm: Attribute[str] = Attribute(str, name='Algorithm')
    hmac_output_length: OptionalDataElement[int] = OptionalDataElement(int, name='HMACOutputLength', adapter=PositiveIntegerAdapter)


class Transform(DSigElement, name='Transform'):
    algorithm: Attribute[str] = Attribute(str, name='Algorithm')
    xpath: OptionalDataElement[str] = OptionalDataElement(str, name='XPath')


class Transforms(XMLCollection[Transform], name='Transforms', namespace=ns_dsig, item_type=Transform):
    pass


class DigestMethod(DSigElement, name='DigestMethod'):
    algorithm: Attribute[str] = Attribute(str, name='Algorithm')


class Reference(DSigElement, name='Reference'):
    id: OptionalAttribute[str] = OptionalAttribute(str, name='Id')
    uri: OptionalAttribute[str] = OptionalAttribute(str, name='URI')
    type: OptionalAttribute[str] = OptionalAttribute(str, name='Type')

    transforms: OptionalElement[Transforms] = OptionalElement(Transforms)
    digest_method: Element[DigestMethod] = Element(DigestMethod)
    digest_value: DataElement[bytes] = DataElement(bytes, name='DigestValue')


class References(XMLCollection[Reference], item_type=Reference):
    pass


class SignedInfo(DSigElement, name='SignedInfo'):
    id: OptionalAttribute[str] = OptionalAttribute(str, name='Id')

    canonicalization_method: Element[CanonicalizationMethod] = Element(CanonicalizationMethod)
    signature_method: Element[SignatureMethod] = Element(SignatureMethod)
    references: MultiElement[References] = MultiElement(References, min_occurs=1)


class SignatureValue(DSigElement, name='SignatureValue'):
    id: OptionalAttribute[str] = OptionalAttribute(str, name='Id')
    value: TextValue[bytes] = TextValue(bytes, required=True)


class KeyName(DSigElement, name='KeyName'):
    value: TextValue[str] = TextValue(str, default='')


class KeyNames(XMLCollection[KeyName], item_type=KeyName):
    pass


class KeyInfo(DSigElement, name='KeyInfo'):
    id: OptionalAttribute[str] = OptionalAttribute(str, name='Id')

    key_names: MultiElement[KeyNames] = MultiElement(KeyNames)


class Signature(DSigElement, name='Signature'):
    id: OptionalAttribute[str] = OptionalAttribute(str, name='Id')

    signed_info: Element[SignedInfo] = Element(SignedInfo)
    signature_value: Element[SignatureValue] = Element(SignatureValue)
    key_info: OptionalElement[KeyInfo] = OptionalElement(KeyInfo)
