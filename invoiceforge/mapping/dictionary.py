"""Field dictionary: canonical invoice fields and their header variants.

Covers QuickBooks, Xero, Zoho, Wave and FreshBooks exports, regional
variations (UK, AU, IN, EU) and common abbreviations. Patterns are listed
in priority order within each field.
"""

from __future__ import annotations

from invoiceforge.mapping.models import FieldDefinition

FIELD_DEFINITIONS: tuple[FieldDefinition, ...] = (
    # Invoice identification
    FieldDefinition(
        field="invoiceNumber",
        patterns=(
            "invoice number", "invoice no", "invoice #", "invoice no.", "invoice num",
            "inv no", "inv #", "inv no.", "inv num", "inv number",
            "invoice_no", "invoice_number", "invoiceno", "invoicenumber", "invoice-no",
            # Document references
            "doc no", "doc #", "doc number", "document number", "document no",
            "document id", "doc id", "document_number", "document_no",
            # Bill references
            "bill no", "bill #", "bill number", "bill_no", "bill_number",
            # Reference numbers
            "reference", "ref", "ref no", "ref #", "ref.", "reference number", "reference no",
            "ref number", "ref_no", "reference_number", "ref_number",
            # Transaction references
            "transaction no", "transaction number", "trans no", "trans #", "txn no", "txn #",
            "transaction_no", "transaction_number", "transaction id", "trans id",
            # QuickBooks
            "num", "no.", "number", "txn number",
            # Xero
            "invoice ref", "inv ref", "credit note number",
            # Zoho
            "invoice#", "creditnote#", "bill#",
            # Spanish / German / Italian / French / Nordic
            "factura no", "factura numero", "rechnung nr", "rechnungsnummer",
            "fattura n", "numero fattura",
            "facture no", "numéro facture",
            "faktura nr",
        ),
        required=True,
        data_type_hints=("INV-", "INV", "BILL-", "REF-", "DOC-"),
    ),
    FieldDefinition(
        field="issueDate",
        patterns=(
            "invoice date", "date", "issue date", "issued date", "issued",
            "invoice_date", "issue_date", "invoicedate", "issuedate",
            "doc date", "document date", "doc_date", "document_date",
            "bill date", "billed date", "bill_date",
            "transaction date", "trans date", "txn date", "transaction_date",
            "created", "created date", "create date", "created_date", "creation date",
            "date created", "date_created",
            # QuickBooks / Xero / Zoho
            "raised date", "created time",
            # International
            "fecha", "fecha factura", "datum", "rechnungsdatum",
            "data", "data fattura",
            "date facture",
        ),
        required=True,
    ),
    FieldDefinition(
        field="dueDate",
        patterns=(
            "due date", "due", "payment due", "due_date", "duedate",
            "payment due date", "pay due", "pay due date",
            "pay by", "pay by date", "payable by", "payable date",
            "payment date", "payment_date", "pmt date",
            "net date", "terms date",
            "expiry", "expiry date", "expires", "valid until", "valid till",
            # Xero / Zoho
            "expected payment", "expected date",
            # International
            "fecha vencimiento", "vencimiento", "fällig", "fälligkeitsdatum",
            "scadenza", "data scadenza",
            "date échéance", "échéance",
        ),
    ),
    # Customer / client
    FieldDefinition(
        field="customerName",
        patterns=(
            "customer", "customer name", "cust", "cust name", "cust. name",
            "customer_name", "customername", "cust_name",
            "client", "client name", "client_name", "clientname",
            "name", "full name", "fullname", "full_name", "contact name",
            "buyer", "buyer name", "buyer_name", "purchaser", "purchaser name",
            "bill to", "billed to", "bill to name", "billto", "bill_to",
            "billing name", "billing_name", "invoice to",
            "sold to", "sold_to", "soldto", "sell to",
            "ship to", "ship to name", "shipto", "ship_to", "shipping name",
            "contact", "contact_name", "contactname",
            "account", "account name", "account_name", "acct name", "acct",
            # QuickBooks / Xero / Zoho
            "customer/job", "customer:job", "to", "customer/vendor",
            # International
            "cliente", "nombre cliente", "kunde", "kundenname",
            "nome cliente",
            "nom client",
            "klant", "klantnaam",
        ),
        required=True,
    ),
    FieldDefinition(
        field="customerEmail",
        patterns=(
            "email", "e-mail", "e mail", "email address", "email_address", "emailaddress",
            "customer email", "customer_email", "customeremail", "cust email", "cust_email",
            "client email", "client_email", "clientemail",
            "contact email", "contact_email", "contactemail",
            "billing email", "billing_email", "bill to email", "invoice email",
            "primary email", "main email",
            # International
            "correo", "correo electrónico",
            "courriel", "adresse email",
        ),
    ),
    FieldDefinition(
        field="customerPhone",
        patterns=(
            "phone", "phone number", "phone_number", "phonenumber", "phone no",
            "telephone", "tel", "tel.", "tel no", "telephone number",
            "mobile", "mobile number", "mobile_number", "mob", "cell", "cell phone", "cellphone",
            "customer phone", "customer_phone", "cust phone", "client phone", "client_phone",
            "contact", "contact number", "contact_number", "contact phone",
            "work phone", "business phone", "office phone", "office",
            "primary phone", "main phone",
            "fax", "fax number",
            # QuickBooks / Xero
            "work",
            # International
            "teléfono", "telefono", "telefon",
            "téléphone",
        ),
    ),
    FieldDefinition(
        field="customerAddress",
        patterns=(
            "address", "full address", "address_full", "fulladdress", "addr",
            "customer address", "customer_address", "cust address", "cust_address",
            "client address", "client_address",
            "billing address", "billing_address", "billingaddress", "bill address", "bill_address",
            "bill to address", "billto address", "invoice address",
            "street", "street address", "street_address", "streetaddress",
            "address line 1", "address1", "address_1", "addr1", "line 1",
            "address line", "address_line",
            "shipping address", "shipping_address", "ship address", "ship_address",
            "ship to address", "shipto address",
            "mailing address", "mailing_address", "postal address",
            "location", "business address", "company address",
            # QuickBooks
            "bill to",
            # International
            "dirección", "direccion", "adresse", "anschrift",
            "indirizzo", "endereço",
        ),
    ),
    FieldDefinition(
        field="customerCompany",
        patterns=(
            "company", "company name", "company_name", "companyname", "co name",
            "business name", "business", "business_name", "org name", "organization",
            "organisation", "firm", "firm name", "enterprise", "entity",
            "customer company", "customer_company", "client company", "client_company",
            # International
            "empresa", "sociedad", "firma", "unternehmen", "gesellschaft",
            "azienda", "société", "entreprise",
        ),
    ),
    FieldDefinition(
        field="customerCity",
        patterns=(
            "city", "city name", "town", "municipality", "suburb",
            "customer city", "billing city", "bill city",
            "ciudad", "stadt", "città", "ville", "cidade",
        ),
    ),
    FieldDefinition(
        field="customerState",
        patterns=(
            "state", "state/province", "province", "region", "county",
            "customer state", "billing state", "bill state",
            "estado", "bundesland", "provincia", "région",
        ),
    ),
    FieldDefinition(
        field="customerPostalCode",
        patterns=(
            "postal code", "postalcode", "postal_code", "zip", "zip code", "zipcode", "zip_code",
            "postcode", "post code", "post_code", "pin", "pin code", "pincode",
            "customer postal code", "billing postal code", "billing zip",
            "código postal", "codigo postal", "plz", "postleitzahl", "cap", "cep", "code postal",
        ),
    ),
    FieldDefinition(
        field="customerCountry",
        patterns=(
            "country", "country name", "nation", "customer country", "billing country",
            "país", "pais", "land", "paese", "pays",
        ),
    ),
    FieldDefinition(
        field="customerTaxId",
        patterns=(
            "tax id", "tax_id", "taxid", "tax number", "tax no", "tax #",
            # VAT (Europe)
            "vat", "vat number", "vat no", "vat #", "vat_number", "vatnumber",
            "vat id", "vat registration", "vat reg", "vat reg no",
            # GST (AU/IN/NZ/SG)
            "gst", "gst number", "gst no", "gst #", "gst_number", "gstnumber",
            "gst registration", "gst reg", "gst reg no", "gstin", "gst in",
            # ABN (Australia)
            "abn", "abn number", "australian business number",
            # EIN/TIN (US)
            "ein", "ein number", "tin", "tin number", "fein", "federal ein",
            "taxpayer id", "taxpayer identification",
            # PAN (India)
            "pan", "pan number", "pan no", "pan card",
            "customer tax id", "customer_tax_id", "client tax id", "client vat",
            "buyer tax id", "buyer vat", "buyer gst",
            # QuickBooks
            "resale no",
            # International
            "nif", "cif", "rfc", "cnpj", "cpf",
            "ust-idnr", "steuernummer",
            "partita iva", "codice fiscale",
            "siret", "siren", "numéro tva",
        ),
    ),
    # Line items
    FieldDefinition(
        field="description",
        patterns=(
            "description", "desc", "desc.", "item description", "item_description",
            "line description", "line_description",
            "item", "item name", "item_name", "itemname",
            "product", "product name", "product_name", "productname", "prod name",
            "product description", "product_description",
            "service", "service name", "service_name", "service description", "service_description",
            "details", "line details", "particulars", "line particulars",
            "goods", "goods description", "goods_description", "goods name",
            "material", "material description", "material_description", "material name",
            "name", "line item", "lineitem", "line_item", "line item name",
            "work", "work description", "labor", "labour", "task", "task description",
            "memo", "line memo", "item memo",
            "sku", "sku description",
            # QuickBooks / Zoho
            "product/service", "service/product", "item details",
            # International
            "descripción", "descripcion", "beschreibung", "bezeichnung",
            "descrizione", "descrição",
        ),
        required=True,
    ),
    FieldDefinition(
        field="quantity",
        patterns=(
            "quantity", "qty", "qty.", "qnty", "quant", "quantity ordered", "quantity shipped",
            "quantity_ordered", "quantity_shipped", "ordered qty", "shipped qty",
            "units", "unit", "count", "cnt", "pcs", "pieces", "nos", "no of units",
            "no.", "no", "number", "num", "amount", "amt",
            "hours", "hrs", "hour", "time", "duration",
            # International
            "cantidad", "menge", "quantità", "quantité", "quantidade",
            "antal", "aantal",
        ),
        data_type_hints=("numeric", "positive integer"),
    ),
    FieldDefinition(
        field="unitPrice",
        patterns=(
            "unit price", "unit_price", "unitprice", "price", "unit cost", "unit_cost",
            "price per unit", "price/unit", "cost per unit", "cost/unit",
            "rate", "unit rate", "unit_rate", "hourly rate", "hr rate", "rate/hr",
            "each", "per unit", "per each", "price each", "cost each",
            "single price", "item price", "item cost", "item_price", "product price",
            "service rate", "line rate",
            "sales price", "selling price", "sell price", "sale price",
            # Xero
            "unit amount",
            # International
            "precio", "precio unitario", "preis", "einzelpreis", "stückpreis",
            "prezzo", "prezzo unitario", "prix", "prix unitaire",
            "preço", "preço unitário",
        ),
        required=True,
    ),
    FieldDefinition(
        field="lineTotal",
        patterns=(
            "total", "line total", "line_total", "linetotal", "item total", "item_total",
            "row total", "row_total", "total price", "total_price",
            "amount", "amt", "amt.", "line amount", "line_amount", "lineamount",
            "item amount", "item_amount", "row amount",
            "subtotal", "sub total", "sub_total", "sub-total", "line subtotal",
            "net", "net amount", "net_amount", "net total", "net value",
            "extended", "extended price", "extended_price", "extended amount", "ext price", "ext amt",
            "gross", "gross amount", "gross_amount", "gross total",
            "sum", "line sum",
            # International
            "importe", "monto", "betrag", "summe", "gesamt",
            "totale", "importo", "montant", "somme",
        ),
    ),
    FieldDefinition(
        field="taxRate",
        patterns=(
            "tax rate", "tax_rate", "taxrate", "tax %", "tax%", "tax percent", "tax percentage",
            "vat rate", "vat_rate", "vatrate", "vat %", "vat%", "vat percent",
            "gst rate", "gst_rate", "gstrate", "gst %", "gst%", "gst percent",
            "sales tax rate", "sales tax %", "sales_tax_rate",
            "tax class", "tax code", "tax_code", "taxcode", "tax type",
            # International
            "tasa impuesto", "iva %", "iva", "mwst", "mwst %", "mehrwertsteuer",
            "aliquota iva", "tva", "taux tva",
        ),
    ),
    FieldDefinition(
        field="taxAmount",
        patterns=(
            "tax amount", "tax_amount", "taxamount", "tax", "tax total", "tax value",
            "line tax", "line_tax", "item tax", "item_tax", "row tax",
            "vat amount", "vat_amount", "vatamount", "vat", "vat total",
            "gst amount", "gst_amount", "gstamount", "gst", "gst total",
            "sales tax", "sales_tax", "salestax", "sales tax amount",
            "tax due", "taxes", "tax charges",
            # International
            "impuesto", "iva", "mwst", "steuer",
            "imposta", "tasse", "taxe", "tva",
        ),
    ),
    FieldDefinition(
        field="discount",
        patterns=(
            "discount", "disc", "disc.", "discnt", "discount amount", "discount_amount",
            "discount %", "discount%", "discount percent", "discount percentage", "discount_percent",
            "line discount", "line_discount", "item discount", "item_discount", "row discount",
            "rebate", "rebate amount", "rebate %",
            "reduction", "price reduction", "markdown",
            "allowance", "allowances",
            # Xero
            "discount rate",
            # International
            "descuento", "rabatt", "rabat",
            "sconto", "remise", "desconto",
        ),
    ),
    FieldDefinition(
        field="sku",
        patterns=(
            "sku", "sku number", "sku_number", "skunumber", "sku no", "sku #", "sku code",
            "item code", "item_code", "itemcode", "item no", "item #", "item number",
            "product code", "product_code", "productcode", "prod code", "prod no", "prod #",
            "part number", "part_number", "partnumber", "part no", "part #", "p/n", "pn",
            "article", "article number", "article_number", "art no", "art #", "art. no",
            "model", "model number", "model_number", "model no", "model #",
            "catalog", "catalog number", "catalogue", "cat no", "cat #",
            "item ref", "product ref", "reference", "ref",
            "upc", "ean", "barcode", "gtin",
            # HSN/SAC (Indian tax codes)
            "hsn", "hsn code", "hsn_code", "sac", "sac code", "sac_code", "hsn/sac",
            # Xero
            "code",
            # International
            "código", "codigo", "artikelnummer", "artikelnr",
            "codice", "código do produto", "référence",
        ),
    ),
    # Invoice totals
    FieldDefinition(
        field="invoiceSubtotal",
        patterns=(
            "subtotal", "sub total", "sub_total", "sub-total",
            "net total", "net_total", "net amount", "net",
            "items total", "line items total", "amount before tax",
            "total before tax", "pretax total", "pre-tax total",
        ),
    ),
    FieldDefinition(
        field="invoiceTax",
        patterns=(
            "total tax", "total_tax", "tax total", "tax_total",
            "total vat", "vat total", "total gst", "gst total",
            "invoice tax", "taxes total", "tax due",
        ),
    ),
    FieldDefinition(
        field="invoiceTotal",
        patterns=(
            "grand total", "grand_total", "grandtotal",
            "invoice total", "invoice_total", "invoicetotal",
            "total amount", "total_amount", "totalamount",
            "total due", "total_due", "amount due", "amount_due",
            "balance due", "balance_due", "balance",
            "final total", "final_total", "final amount",
            "gross total", "gross_total", "gross amount",
            "amount payable", "payable amount", "payable",
            "total (usd)", "total (eur)", "total (gbp)", "total (inr)",
            "total incl tax", "total including tax", "total inc vat", "total inc gst",
        ),
    ),
    FieldDefinition(
        field="amountPaid",
        patterns=(
            "amount paid", "amount_paid", "amountpaid", "paid", "paid amount",
            "payment", "payment amount", "payments", "received", "amount received",
            "deposit", "deposits", "advance", "advance payment", "prepaid",
        ),
    ),
    # Additional fields
    FieldDefinition(
        field="currency",
        patterns=(
            "currency", "curr", "cur", "currency code", "currency_code", "currencycode",
            "ccy", "money", "payment currency",
            "moneda", "währung", "valuta", "devise", "moeda",
        ),
    ),
    FieldDefinition(
        field="status",
        patterns=(
            "status", "invoice status", "invoice_status", "invoicestatus",
            "payment status", "payment_status", "paymentstatus",
            "state", "invoice state", "invoice_state",
            "paid status", "billing status", "order status",
            "paid", "unpaid", "overdue", "draft", "sent", "pending",
            "estado", "statut", "zustand",
        ),
    ),
    FieldDefinition(
        field="notes",
        patterns=(
            "notes", "note", "memo", "memos", "comments", "comment",
            "remarks", "remark", "additional notes", "additional_notes",
            "invoice notes", "invoice_notes", "message", "messages",
            "internal notes", "customer notes", "description notes",
            "notas", "notizen", "anmerkungen", "remarques",
        ),
    ),
    FieldDefinition(
        field="terms",
        patterns=(
            "terms", "payment terms", "payment_terms", "paymentterms",
            "terms and conditions", "conditions", "payment conditions",
            "net terms", "credit terms",
            "términos", "condiciones", "bedingungen", "zahlungsbedingungen",
            "termini", "condizioni", "conditions de paiement",
        ),
    ),
    FieldDefinition(
        field="poNumber",
        patterns=(
            "po number", "po_number", "ponumber", "po no", "po no.", "po #", "po",
            "p.o. number", "p.o. no", "p.o.", "p.o",
            "purchase order", "purchase order number", "purchase_order", "purchaseorder",
            "order number", "order no", "order #", "order", "order_number", "ordernumber",
            "customer po", "customer_po", "cust po", "client po", "your po",
            "customer order", "client order",
            "your ref", "your reference", "buyer ref", "buyer reference",
            "so number", "so no", "so #", "sales order", "sales_order",
            # Xero
            "reference", "customer ref",
            # International
            "pedido", "número pedido", "bestellung", "bestellnummer",
            "ordine", "numero ordine", "commande", "numéro commande",
        ),
    ),
    # Identification fields (multi-sheet joins)
    FieldDefinition(
        field="customerId",
        patterns=(
            "customer id", "customer_id", "customerid", "cust id", "cust_id", "custid",
            "client id", "client_id", "clientid",
            "customer code", "customer_code", "cust code",
            "customer number", "customer_number", "cust no", "cust #",
            "account id", "account_id", "acct id", "account number", "acct no",
            "contact id", "contact_id",
        ),
    ),
    FieldDefinition(
        field="invoiceId",
        patterns=(
            "invoice id", "invoice_id", "invoiceid", "inv id", "inv_id", "invid",
            "document id", "doc id", "doc_id", "docid",
            "transaction id", "trans id", "trans_id", "transid", "txn id",
        ),
    ),
    FieldDefinition(
        field="lineItemId",
        patterns=(
            "line id", "line_id", "lineid", "item id", "item_id", "itemid",
            "line number", "line_number", "line no", "line #",
            "row id", "row_id", "rowid", "row number", "row no", "row #",
            "detail id", "detail_id", "seq", "sequence", "seq no",
        ),
    ),
)

_BY_NAME: dict[str, FieldDefinition] = {d.field: d for d in FIELD_DEFINITIONS}


def get_required_fields() -> list[str]:
    """Canonical fields every invoice sheet set must map."""
    return [d.field for d in FIELD_DEFINITIONS if d.required]


def get_optional_fields() -> list[str]:
    return [d.field for d in FIELD_DEFINITIONS if not d.required]


def get_all_field_definitions() -> list[dict[str, object]]:
    """Field names with their required flag, for display."""
    return [{"field": d.field, "required": d.required} for d in FIELD_DEFINITIONS]


def get_field_definition(field: str) -> FieldDefinition | None:
    return _BY_NAME.get(field)
